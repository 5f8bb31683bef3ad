"""
Search index utilities.

Provides the canonical conversion from document ids to Qdrant point ids.
"""

import hashlib


def document_id_to_point_id(document_id: str) -> int:
    """
    Convert a document id to a Qdrant point id using consistent SHA256 hashing.

    Qdrant only accepts unsigned integers or UUIDs as point ids, while
    document ids are arbitrary entity id strings. Every caller that writes
    or deletes points must use this function so both sides agree.

    Args:
        document_id: Document identifier (the component's entity id)

    Returns:
        Integer point ID for Qdrant storage

    Example:
        >>> document_id_to_point_id("a1b2c3") == document_id_to_point_id("a1b2c3")
        True
    """
    # First 8 bytes of the digest as an unsigned integer
    hash_digest = hashlib.sha256(document_id.encode('utf-8')).digest()
    return int.from_bytes(hash_digest[:8], byteorder='big', signed=False)
