"""Core functionality for the Whisk proxy and the batch queue.

This module provides the core components of the Whisk Batch Generator:

- **SessionCache**: Cached upstream session with expiry validation
- **AccessTokenResolver**: One-shot session refresh and token lookup
- **WhiskClient**: Upstream image generation requests
- **BatchQueueController**: Sequential multi-prompt runs with pacing and stop
- **WhiskConfig**: Configuration management using Pydantic Settings
- **config**: Global configuration instance (loads from environment variables)

Architecture Overview
---------------------
The core module follows a layered architecture:

1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with WHISK_ in .env files

2. **Session Layer** (kv_store.py, session_cache.py, token_resolver.py):
   - Key-value store backends (in-memory or Redis)
   - Session usability rules with a 5 minute lookahead
   - Credential-for-token exchange with at most one refresh per call

3. **Generation Layer** (whisk_client.py, images.py):
   - Upstream request construction and error normalisation
   - Image panel extraction into GeneratedImage objects

4. **Batch Layer** (batch.py):
   - Prompt splitting on ``---``
   - Serial task processing with cooperative cancellation

Usage Example
-------------
    import httpx

    from whiskbatch.core import (
        AccessTokenResolver,
        MemoryKeyValueStore,
        SessionCache,
        WhiskClient,
        config,
    )

    async with httpx.AsyncClient() as http:
        cache = SessionCache(MemoryKeyValueStore(), config.session_key)
        resolver = AccessTokenResolver(cache, http, config.identity_url)
        client = WhiskClient(resolver, http, config.generation_url)
        result = await client.generate("a lighthouse at dusk", "IMAGE_ASPECT_RATIO_SQUARE", cookie)
"""

from whiskbatch.core.batch import (
    BatchQueueController,
    BatchRun,
    CancellationToken,
    GenerationTask,
    TaskStatus,
    split_prompts,
)
from whiskbatch.core.config import WhiskConfig, config
from whiskbatch.core.errors import (
    AuthError,
    MalformedResponseError,
    UpstreamError,
    ValidationError,
    WhiskError,
)
from whiskbatch.core.images import GeneratedImage, extract_generated_images
from whiskbatch.core.kv_store import (
    KeyValueStore,
    MemoryKeyValueStore,
    RedisKeyValueStore,
    create_store,
)
from whiskbatch.core.session_cache import SessionCache, SessionRecord, SessionUnusable
from whiskbatch.core.token_resolver import AccessTokenResolver
from whiskbatch.core.whisk_client import WhiskClient

__all__ = [
    "AccessTokenResolver",
    "AuthError",
    "BatchQueueController",
    "BatchRun",
    "CancellationToken",
    "GeneratedImage",
    "GenerationTask",
    "KeyValueStore",
    "MalformedResponseError",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "SessionCache",
    "SessionRecord",
    "SessionUnusable",
    "TaskStatus",
    "UpstreamError",
    "ValidationError",
    "WhiskClient",
    "WhiskConfig",
    "WhiskError",
    "config",
    "create_store",
    "extract_generated_images",
    "split_prompts",
]
