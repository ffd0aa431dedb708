class HuffmanError(Exception):
    pass


class InvalidInput(HuffmanError, ValueError):
    """Bit string holds something other than '0'/'1', or a symbol is outside the alphabet."""


class EmptyAlphabet(HuffmanError, ValueError):
    pass


class CorruptedStream(HuffmanError, ValueError):
    """Bit sequence ran out (or went off the tree) before reaching a leaf."""


class IOFailure(HuffmanError, OSError):
    pass
