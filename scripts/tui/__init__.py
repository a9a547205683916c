"""
Record browser TUI - full-screen browsing of Azure DevOps records.

Architecture:
- providers.py: Data access protocols (RecordSource, LinkOpener) and Dataset
- az_provider.py: RecordSource implementations over the az CLI
- views/: Textual screen/widget components
- app.py: Main application entry point

Extensibility points:
1. New views: Add to views/, register in app.py
2. New data sources: Implement the RecordSource protocol
3. New record types: Build a FieldRegistry and a Dataset for them
"""
