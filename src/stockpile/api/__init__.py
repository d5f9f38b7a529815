"""Stockpile - FastAPI REST API layer.

This package contains the FastAPI application, the Pydantic request and
response models, and the mapping from stored records to client views.

Modules
-------
main
    Route handlers, error translation, ``create_app()`` and the ``main()``
    CLI entry point.
models
    Pydantic models for API request and response bodies.
views
    Record-to-view mapping and the search photo-link suffix.
"""
