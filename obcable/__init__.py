"""Observer sidecar agent: directory setup, process supervision, HTTP control API and cloud.oceanbase.com/v1 resource models."""

__version__ = "0.1.0"
__all__ = ["api", "dirs", "monitor", "server"]