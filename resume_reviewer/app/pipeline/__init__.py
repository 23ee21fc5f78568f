"""The resume analysis pipeline.

Modules:
    capability: Client capability classification.
    conversion: Document-to-image conversion and text extraction.
    errors: The failure taxonomy shared by every stage.
    orchestrator: Sequences upload, conversion, persistence, inference and validation.
    retrieval: Loads stored records and their artifacts.

"""
