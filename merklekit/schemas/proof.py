"""
Module 01 - Schemas & Shared Types
File: proof.py

Purpose: Value types shared by the proof builder and the proof verifier.

An ExistenceProof is a standalone value: it owns copies of the sibling
digests it needs and keeps no reference to the tree that produced it.
Every sibling digest travels with an explicit Direction, both in memory
and when serialized.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)

from merklekit.crypto.hashing import DEFAULT_ALGORITHM, from_hex, to_hex
from merklekit.schemas.errors import MalformedProofException
# Current schema version of serialized existence proofs
SCHEMA_VERSION = "v1"
SUPPORTED_SCHEMA_VERSIONS: frozenset[str] = frozenset({SCHEMA_VERSION})

# A tree over fewer than 2**64 leaves never needs more steps than this.
MAX_PROOF_STEPS = 64


class Direction(str, Enum):
    """Side occupied by a sibling digest relative to the node on the path."""

    LEFT = "left"
    RIGHT = "right"


class VerificationOutcome(str, Enum):
    """
    Result of folding a proof.

    MISMATCH is an expected negative outcome (the proof is well-formed but
    the data disagrees with the claimed root), not an error.
    """

    VERIFIED = "verified"
    MISMATCH = "mismatch"

    @property
    def ok(self) -> bool:
        return self is VerificationOutcome.VERIFIED


class ProofStep(BaseModel):
    """One (sibling digest, direction) pair of a Merkle path."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    sibling: bytes = Field(
        ...,
        description="Sibling digest (raw bytes; 0x-prefixed hex in JSON)",
    )
    direction: Direction = Field(
        ...,
        description="Which side the sibling occupies",
    )

    @field_validator("sibling", mode="before")
    @classmethod
    def parse_sibling(cls, v: Any) -> Any:
        if isinstance(v, str):
            return from_hex(v)
        if isinstance(v, (bytearray, memoryview)):
            return bytes(v)
        return v

    @field_validator("sibling")
    @classmethod
    def validate_sibling(cls, v: bytes) -> bytes:
        if len(v) == 0:
            raise ValueError("sibling digest must not be empty")
        return v

    @field_serializer("sibling", when_used="json")
    def serialize_sibling(self, v: bytes) -> str:
        return to_hex(v)


class ExistenceProof(BaseModel):
    """
    Proof that an element sits at a given position of a Merkle tree.

    Attributes:
        steps: Sibling digests with directions, ordered bottom-to-top,
            excluding the root
        algorithm: Name of the digest algorithm the tree was built with
        schema_version: Serialization schema version
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: str = Field(default=SCHEMA_VERSION)
    algorithm: str = Field(default=DEFAULT_ALGORITHM, min_length=1)
    steps: tuple[ProofStep, ...] = Field(default_factory=tuple)

    @field_validator("schema_version")
    @classmethod
    def validate_schema_version(cls, v: str) -> str:
        if v not in SUPPORTED_SCHEMA_VERSIONS:
            raise ValueError(
                f"Unsupported schema version: '{v}'. "
                f"Supported versions: {sorted(SUPPORTED_SCHEMA_VERSIONS)}"
            )
        return v

    @model_validator(mode="after")
    def validate_steps(self) -> "ExistenceProof":
        """Ensure the path is bounded and all digests share one length."""
        if len(self.steps) > MAX_PROOF_STEPS:
            raise ValueError(
                f"Proof has {len(self.steps)} steps, more than the "
                f"maximum of {MAX_PROOF_STEPS}"
            )
        sizes = {len(step.sibling) for step in self.steps}
        if len(sizes) > 1:
            raise ValueError(
                f"Proof steps have inconsistent digest lengths: {sorted(sizes)}"
            )
        return self

    @property
    def digest_size(self) -> int | None:
        """Length of the sibling digests, or None for an empty proof."""
        if not self.steps:
            return None
        return len(self.steps[0].sibling)

    @property
    def directions(self) -> list[Direction]:
        return [step.direction for step in self.steps]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict (digests as 0x hex)."""
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExistenceProof":
        """
        Parse a serialized proof.

        Raises:
            MalformedProofException: If the payload is structurally invalid
                or uses an unsupported schema version
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedProofException(
                f"Invalid existence proof payload: {e.error_count()} error(s)",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

    @classmethod
    def from_json(cls, raw: str | bytes) -> "ExistenceProof":
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise MalformedProofException(f"Existence proof is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedProofException(
                f"Existence proof must be a JSON object, got {type(data).__name__}"
            )
        return cls.from_dict(data)


__all__ = [
    "MAX_PROOF_STEPS",
    "Direction",
    "VerificationOutcome",
    "ProofStep",
    "ExistenceProof",
]
