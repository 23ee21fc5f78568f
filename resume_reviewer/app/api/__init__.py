"""
The HTTP API of the resume reviewer application.

Routes live in `routes/`, with request handling helpers in `routes/route_logic/`.
Collaborators (stores, converter, inference client, pipeline) are provided
through the FastAPI dependencies in `dependencies.py`, so tests can replace
them with `app.dependency_overrides`.

"""
