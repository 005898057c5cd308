def strip_filter(value):
    """WTForms filter trimming surrounding whitespace from text input."""
    return value.strip() if isinstance(value, str) else value
