"""EUC-JP to Unicode conversion."""

import logging

log = logging.getLogger(__name__)

REPLACEMENT_CHARACTER = "�"


class EncodingConverter:
    """Decode the legacy EUC-JP byte strings produced by the dictionary library.

    Conversion never fails: malformed sequences become U+FFFD.
    """

    encoding = "euc_jp"

    def convert(self, data: bytes) -> str:
        """Convert EUC-JP bytes to text, stopping at the first NUL."""
        end = data.find(b"\0")
        if end >= 0:
            data = data[:end]

        text = data.decode(self.encoding, errors="replace")

        if REPLACEMENT_CHARACTER in text:
            log.debug(
                "Replaced %d malformed sequence(s) in %d bytes",
                text.count(REPLACEMENT_CHARACTER),
                len(data),
            )
        return text
