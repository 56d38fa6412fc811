"""
Key Wrapper Application
=======================

FastAPI service that authenticates clients with a dummy key and forwards
their requests to the AI gateway with the real OpenAI key.

Modules:
    - config: Environment settings and the per-request credential bundle
    - models: Error codes and the flat JSON error record
    - auth: Dummy key extraction and comparison
    - proxy: Validation pipeline and upstream forwarding
    - main: Application factory and lifespan
"""
