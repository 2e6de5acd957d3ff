"""proxctl - lifecycle control for Proxmox VE virtual machines and containers

Philosophy:
- Ruthless simplicity
- Brick architecture (self-contained modules)
- Security by design (no credentials in logs or error output)
- Fail fast with helpful guidance

The proxctl CLI resolves workloads by id or selector, runs start/stop/
delete/template operations against them through the cluster API, and
reports one result per workload.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
