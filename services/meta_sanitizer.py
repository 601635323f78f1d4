from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final

from core.errors import unsupported_labels
from schemas.block_meta import UPLOAD_SOURCE, BlockMeta

TENANT_ID_LABEL: Final[str] = "__org_id__"
COMPACTOR_SHARD_ID_LABEL: Final[str] = "__compactor_shard_id__"
INGESTER_ID_LABEL: Final[str] = "__ingester_id__"
DEPRECATED_SHARD_ID_LABEL: Final[str] = "__shard_id__"


@dataclass(frozen=True)
class LabelPolicy:
    preserved: frozenset[str]
    stripped: frozenset[str]

    def classify(self, labels: dict[str, str]) -> tuple[dict[str, str], list[str], list[str]]:
        """Split ``labels`` into (kept, stripped keys, rejected keys)."""
        kept: dict[str, str] = {}
        stripped: list[str] = []
        rejected: list[str] = []
        for name, value in labels.items():
            if name in self.preserved:
                kept[name] = value
            elif name in self.stripped:
                stripped.append(name)
            else:
                rejected.append(name)
        return kept, sorted(stripped), sorted(rejected)


EXTERNAL_LABEL_POLICY: Final[LabelPolicy] = LabelPolicy(
    preserved=frozenset({TENANT_ID_LABEL, COMPACTOR_SHARD_ID_LABEL}),
    stripped=frozenset({INGESTER_ID_LABEL, DEPRECATED_SHARD_ID_LABEL}),
)


def sanitize_meta(
    meta: BlockMeta,
    *,
    block_id: str,
    tenant_id: str,
    logger: logging.LoggerAdapter,
    policy: LabelPolicy = EXTERNAL_LABEL_POLICY,
) -> BlockMeta:
    """Return a copy of ``meta`` that is safe to stage for ``tenant_id``.

    The block ID and tenant label always come from the session, never from the
    uploaded document. Any label outside ``policy`` fails the whole request.
    """
    sanitized = meta.model_copy(deep=True)
    labels = dict(sanitized.thanos.labels or {})

    sanitized.ulid = block_id
    labels[TENANT_ID_LABEL] = tenant_id

    kept, stripped, rejected = policy.classify(labels)
    for name in stripped:
        logger.debug(
            "removing unused external label from meta.json",
            extra={"context": {"label": name, "value": labels[name]}},
        )

    if rejected:
        logger.warning(
            "rejecting unsupported external label(s) in meta.json",
            extra={"context": {"labels": ",".join(rejected)}},
        )
        raise unsupported_labels(rejected)

    sanitized.thanos.labels = kept
    sanitized.thanos.source = UPLOAD_SOURCE
    return sanitized
