"""
Module 01 - Schemas & Shared Types
File: errors.py

Purpose: Standard error taxonomy for tree construction, proof building and
proof verification. Defines both Pydantic models for structured error
communication and Python exceptions for control flow.

A hash disagreement during verification is NOT an error: it is reported as
VerificationOutcome.MISMATCH. The exceptions below cover structurally
invalid calls only.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the library."""

    # Construction
    EMPTY_INPUT = "EMPTY_INPUT"
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"

    # Proof building
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"

    # Proof verification
    MALFORMED_PROOF = "MALFORMED_PROOF"

    # Digest primitives
    UNSUPPORTED_DIGEST = "UNSUPPORTED_DIGEST"

    # Configuration
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class MerkleError(BaseModel):
    """
    Error model for structured error communication.

    Callers that ship failures across a process or network boundary can
    serialize this model instead of re-raising.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.INDEX_OUT_OF_RANGE],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "MerkleException":
        """Convert this error model to a raisable exception of the matching type."""
        exc_type = _EXCEPTIONS_BY_CODE.get(self.code, MerkleException)
        exc = MerkleException.__new__(exc_type)
        MerkleException.__init__(
            exc,
            message=self.message,
            code=self.code,
            details=self.details,
            retryable=self.retryable,
        )
        return exc


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class MerkleException(Exception):
    """
    Base exception for all merklekit errors.

    Carries structured error information and can be converted to/from
    MerkleError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "MERKLE_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> MerkleError:
        """Convert this exception to a MerkleError model."""
        return MerkleError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class EmptyInputException(MerkleException, ValueError):
    """Raised when a tree is built from zero elements."""

    def __init__(
        self,
        message: str = "Cannot build a Merkle tree from an empty element list",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.EMPTY_INPUT,
            details=details,
            retryable=False,
        )


class IndexOutOfRangeException(MerkleException, IndexError):
    """Raised when a leaf index or node coordinate lies outside the tree."""

    def __init__(
        self,
        message: str,
        index: int | None = None,
        leaf_count: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if index is not None:
            full_details["index"] = index
        if leaf_count is not None:
            full_details["leaf_count"] = leaf_count
        super().__init__(
            message=message,
            code=ErrorCodes.INDEX_OUT_OF_RANGE,
            details=full_details,
            retryable=False,
        )


class MalformedProofException(MerkleException, ValueError):
    """Raised when a proof is structurally invalid, before any folding happens."""

    def __init__(
        self,
        message: str,
        step: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if step is not None:
            full_details["step"] = step
        super().__init__(
            message=message,
            code=ErrorCodes.MALFORMED_PROOF,
            details=full_details,
            retryable=False,
        )


class UnsupportedDigestException(MerkleException, ValueError):
    """Raised when a digest algorithm is unknown or not cryptographically strong."""

    def __init__(
        self,
        message: str,
        algorithm: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if algorithm:
            full_details["algorithm"] = algorithm
        super().__init__(
            message=message,
            code=ErrorCodes.UNSUPPORTED_DIGEST,
            details=full_details,
            retryable=False,
        )


class CanonicalizationException(MerkleException, ValueError):
    """Raised when an element cannot be converted to canonical bytes."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
            retryable=False,
        )


class ConfigurationException(MerkleException, ValueError):
    """Raised when runtime configuration values cannot be parsed."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if key:
            full_details["key"] = key
        super().__init__(
            message=message,
            code=ErrorCodes.CONFIGURATION_ERROR,
            details=full_details,
            retryable=False,
        )


_EXCEPTIONS_BY_CODE: dict[str, type[MerkleException]] = {
    ErrorCodes.EMPTY_INPUT: EmptyInputException,
    ErrorCodes.INDEX_OUT_OF_RANGE: IndexOutOfRangeException,
    ErrorCodes.MALFORMED_PROOF: MalformedProofException,
    ErrorCodes.UNSUPPORTED_DIGEST: UnsupportedDigestException,
    ErrorCodes.CANONICALIZATION_ERROR: CanonicalizationException,
    ErrorCodes.CONFIGURATION_ERROR: ConfigurationException,
}
