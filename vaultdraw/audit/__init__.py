"""Audit bundle construction and verification."""

from .bundle import (
    AuditBundle,
    BundleVerification,
    build_audit_bundle,
    collect_statistics,
    compute_bundle_hash,
    results_checksum,
    verify_bundle,
)

__all__ = [
    "AuditBundle",
    "BundleVerification",
    "build_audit_bundle",
    "collect_statistics",
    "compute_bundle_hash",
    "results_checksum",
    "verify_bundle",
]
