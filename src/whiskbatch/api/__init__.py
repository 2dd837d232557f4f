"""Whisk Batch Generator: FastAPI proxy layer.

This package contains the FastAPI application, Pydantic request/response
models, and the generate request handler.

Modules
-------
main
    FastAPI application factory, routes and the ``main()`` CLI entry point.
models
    Pydantic models for request validation and error envelopes.
generate_handler
    Parse/validate/generate/respond logic behind ``POST /generate``.
"""
