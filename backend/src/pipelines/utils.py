def adapt_to_dimension(vector: list[float], dimension: int) -> list[float]:
    """Fit a native embedding vector to the similarity index dimension.

    This is a lossy compatibility shim, not a learned projection:
      - same length: returned unchanged
      - dimension is a multiple of the length: the vector is tiled
      - longer than dimension: truncated to the first `dimension` values
      - otherwise: right-padded with zeros
    """
    length = len(vector)
    if length == dimension:
        return list(vector)
    if length and dimension % length == 0:
        return list(vector) * (dimension // length)
    if length > dimension:
        return list(vector[:dimension])
    return list(vector) + [0.0] * (dimension - length)
