"""
Passive Authentication Crypto Package.

Signed content decoding, signature verification and data group hash
cross-checking.
"""

from .algorithms import AlgorithmRegistry, SignatureAlgorithm, hash_for_name
from .content_decoder import ContentDecoder, DecodedContent, decode_signed_content
from .data_group_hasher import DataGroupHasher, compute_hash
from .signature_verifier import SignatureVerifier

__all__ = [
    "AlgorithmRegistry",
    "ContentDecoder",
    "DataGroupHasher",
    "DecodedContent",
    "SignatureAlgorithm",
    "SignatureVerifier",
    "compute_hash",
    "decode_signed_content",
    "hash_for_name",
]
