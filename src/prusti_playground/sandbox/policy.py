"""Resource limits and isolation settings for playground session containers."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SessionPolicy:
    """Immutable policy governing a playground session container.

    Sessions never get network access: dependencies are already in the
    pre-warmed cache, so builds must not need to resolve anything.
    ``network_disabled`` is locked to ``True`` in ``__post_init__``.
    """

    network_disabled: bool = True  # ALWAYS True – enforced in __post_init__
    memory_limit_mb: int = 2048
    cpu_period: int = 100000
    cpu_quota: int = 100000  # 1 CPU
    pids_limit: int = 256
    tmpfs_size_mb: int = 256
    timeout_seconds: int = 120
    no_new_privileges: bool = True
    cap_drop: list[str] = field(default_factory=lambda: ["ALL"])

    def __post_init__(self) -> None:
        if not self.network_disabled:
            raise ValueError(
                "SessionPolicy.network_disabled MUST be True. "
                "Playground sessions are never allowed network access."
            )
        if self.memory_limit_mb <= 0:
            raise ValueError("memory_limit_mb must be a positive integer.")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be a positive integer.")
        if self.pids_limit <= 0:
            raise ValueError("pids_limit must be a positive integer.")
        if self.cpu_period <= 0 or self.cpu_quota <= 0:
            raise ValueError("cpu_period and cpu_quota must be positive integers.")
        if self.tmpfs_size_mb <= 0:
            raise ValueError("tmpfs_size_mb must be a positive integer.")

    def to_container_config(self) -> dict:
        """Convert to keyword arguments for ``containers.create``."""
        return {
            "network_mode": "none",
            "mem_limit": f"{self.memory_limit_mb}m",
            "memswap_limit": f"{self.memory_limit_mb}m",  # No swap
            "cpu_period": self.cpu_period,
            "cpu_quota": self.cpu_quota,
            "pids_limit": self.pids_limit,
            "security_opt": ["no-new-privileges"] if self.no_new_privileges else [],
            "cap_drop": self.cap_drop,
            # setuid/setgid are needed by the entrypoint to switch users.
            "cap_add": ["SETUID", "SETGID"],
            "tmpfs": {"/tmp": f"size={self.tmpfs_size_mb}m,nosuid"},
        }
