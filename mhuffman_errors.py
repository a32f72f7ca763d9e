# filename: mhuffman_errors.py


class MHuffmanError(Exception):
    """Base class for every error raised by the codec."""


class ConfigurationError(MHuffmanError, ValueError):
    """Branching factor or codec settings rejected before any tree work."""


class InternalConsistencyError(MHuffmanError, RuntimeError):
    """A symbol reached the encoder without an entry in its code table."""


class DecodeError(MHuffmanError, ValueError):
    def __init__(self, offset, reason):
        super().__init__(f"cannot decode at digit {offset}: {reason}")
        self.offset = offset
        self.reason = reason
