"""This module serves as the entry point for the resume reviewer application.

The application takes an uploaded resume, renders a preview of it, asks an LLM
for a structured multi-category review against a job description, and stores
the validated review so it can be retrieved later.

Notes:
    1. This module does not contain any functions or classes of its own.
    2. The application logic is defined in other modules, such as:
       - app.core.config: Application settings and configuration.
       - app.pipeline.orchestrator: The resume analysis pipeline.
       - app.pipeline.retrieval: The read path for stored reviews.
       - app.api.routes: The HTTP API.
    3. No disk, network, or database access occurs in this module directly.

"""
