"""Gradio batch UI for the Whisk proxy.

Modules
-------
app
    Gradio Blocks layout and the ``main()`` entry point.
models
    UIState, CredentialState and browser-storage constants.
credentials
    Cookie-export parsing and credential status checks.
api_client
    HTTP client for the proxy's ``/generate`` endpoint.
formatting
    Rendering of state into gallery items and Markdown.
handlers
    Event handlers grouped by feature area.
"""
