"""Core provisioning logic: manifest, audit, reconciliation and orchestration."""
