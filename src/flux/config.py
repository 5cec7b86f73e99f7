"""Engine configuration.

One frozen dataclass shared by the engine, the server and every request
context. Built once, before ``Engine`` is constructed.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Engine configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = EngineConfig(max_multipart_size=10 << 20, debug=True)
    """

    # Body parsing
    max_multipart_size: int = 5 << 20  # 5 MiB

    # Dispatch
    not_found_body: str = "404 page not found\n"

    # Diagnostics (HTTP error dispatch logged at INFO instead of DEBUG)
    debug: bool = False
