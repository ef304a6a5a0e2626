import logging

from itmsplit.core.dispatcher import dispatch, hexdump


class RecordingDecoder:
    def __init__(self):
        self.received = []
        self.shutdowns = 0

    def pump(self, byte: int) -> None:
        self.received.append(byte)

    def shutdown(self) -> None:
        self.shutdowns += 1


def test_every_byte_delivered_in_order():
    decoder = RecordingDecoder()

    assert dispatch(decoder, b"\x02\x00\xaa") == 3
    assert decoder.received == [0x02, 0x00, 0xAA]


def test_chunks_concatenate_without_loss_or_duplication():
    decoder = RecordingDecoder()
    chunks = [b"\x01\x02", b"", b"\x03", bytes(range(250, 256)), b"\x01\x01"]

    for chunk in chunks:
        dispatch(decoder, chunk)

    assert bytes(decoder.received) == b"".join(chunks)


def test_debug_logging_dumps_the_block(caplog):
    decoder = RecordingDecoder()

    with caplog.at_level(logging.DEBUG, logger="itmsplit"):
        dispatch(decoder, bytes(range(18)))

    assert "RXED Packet of 18 bytes" in caplog.text
    assert "00 01 02 03 04 05 06 07 08 09 0A 0B 0C 0D 0E 0F\n10 11" in caplog.text


def test_hexdump_wraps_at_width():
    assert hexdump(b"\xaa\xbb\xcc", width=2) == "AA BB\nCC"
