"""
Core documents, vocabularies and boundaries of the taste pipeline.

- entities: stored documents and their enums
- taxonomy: archetypes, signal weights, keyword taxonomy
- collaborators: external services the pipeline calls
- repositories: storage-agnostic persistence
"""
