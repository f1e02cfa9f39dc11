"""
Unit tests for the unbuffered canvas operations.

Each test drives a PixelflutConnection over a FakeSocket with a scripted
server reply and checks the bytes sent, the result, and whether the
connection survived.
"""

import unittest

from py2pixelflut.core.errors import (
    InvalidArgumentError,
    InvalidStateError,
    ProtocolError,
    ReadReturnedZeroError,
    ReadTooMuchError,
    UnexpectedCoordsError,
    WriteError,
)
from py2pixelflut.core.tcp_connection import PixelflutConnection
from py2pixelflut.models.connection import ConnectionState
from py2pixelflut.models.pixel import Pixel
from py2pixelflut.services import canvas_service
from fakes import CanvasResponder, FakeSocket


def make_connection(incoming=b"", **kwargs):
    sock = FakeSocket(incoming, **kwargs)
    return PixelflutConnection.from_socket(sock), sock


class TestGetSize(unittest.TestCase):
    """Test the SIZE round trip."""

    def test_get_size(self):
        """Test that a SIZE reply is parsed into (width, height)."""
        conn, sock = make_connection(b"SIZE 100 100\n")

        self.assertEqual(canvas_service.get_size(conn), (100, 100))
        self.assertEqual(bytes(sock.sent), b"SIZE\n")
        self.assertTrue(conn.is_valid())

    def test_get_size_fragmented_reply(self):
        conn, _ = make_connection(b"SIZE 1920 1080\n", chunk_size=1)
        self.assertEqual(canvas_service.get_size(conn), (1920, 1080))

    def test_malformed_reply_closes_connection(self):
        conn, sock = make_connection(b"HELLO\n")

        with self.assertRaises(ProtocolError):
            canvas_service.get_size(conn)

        self.assertFalse(conn.is_valid())
        self.assertEqual(conn.state, ConnectionState.ERROR)
        self.assertTrue(sock.closed)

    def test_extra_reply_is_read_too_much(self):
        conn, sock = make_connection(b"SIZE 100 100\nSIZE 100 100\n")

        with self.assertRaises(ReadTooMuchError):
            canvas_service.get_size(conn)

        self.assertTrue(sock.closed)

    def test_server_hangup_closes_connection(self):
        conn, sock = make_connection(b"SIZE 10")

        with self.assertRaises(ReadReturnedZeroError):
            canvas_service.get_size(conn)

        self.assertTrue(sock.closed)

    def test_get_size_on_closed_connection(self):
        conn, sock = make_connection(b"SIZE 100 100\n")
        conn.close()

        with self.assertRaises(InvalidStateError):
            canvas_service.get_size(conn)

        self.assertEqual(bytes(sock.sent), b"")


class TestPutPixel(unittest.TestCase):
    """Test the single-pixel write."""

    def test_put_pixel(self):
        conn, sock = make_connection()

        canvas_service.put_pixel(conn, Pixel(3, 4, 255, 0, 0))

        self.assertEqual(bytes(sock.sent), b"PX 3 4 ff0000\n")
        self.assertEqual(conn.num_pixels_written, 1)
        self.assertEqual(sock.read_phases(), 0)

    def test_put_pixel_with_alpha(self):
        conn, sock = make_connection()

        canvas_service.put_pixel(conn, Pixel(3, 4, 255, 0, 0, 0x80), use_alpha=True)

        self.assertEqual(bytes(sock.sent), b"PX 3 4 ff000080\n")

    def test_put_pixel_send_failure(self):
        conn, sock = make_connection()
        sock.send_error = OSError(32, "Broken pipe")

        with self.assertRaises(WriteError):
            canvas_service.put_pixel(conn, Pixel(1, 1))

        self.assertFalse(conn.is_valid())
        self.assertEqual(conn.num_pixels_written, 0)

    def test_put_none_pixel_keeps_connection(self):
        conn, sock = make_connection()

        with self.assertRaises(InvalidArgumentError):
            canvas_service.put_pixel(conn, None)

        self.assertTrue(conn.is_valid())
        self.assertEqual(bytes(sock.sent), b"")

    def test_put_pixel_mutated_out_of_range(self):
        conn, _ = make_connection()
        px = Pixel(1, 1)
        px.r = 256

        with self.assertRaises(InvalidArgumentError):
            canvas_service.put_pixel(conn, px)

        self.assertTrue(conn.is_valid())

    def test_closed_connection_checked_before_argument(self):
        conn, _ = make_connection()
        conn.close()

        with self.assertRaises(InvalidStateError):
            canvas_service.put_pixel(conn, None)


class TestGetPixel(unittest.TestCase):
    """Test the single-pixel read."""

    def test_get_pixel(self):
        """Test that the reply color is stored in the pixel with alpha 0xFF."""
        conn, sock = make_connection(b"PX 3 4 00ff00\n")
        px = Pixel(3, 4, 1, 2, 3, 4)

        result = canvas_service.get_pixel(conn, px)

        self.assertIs(result, px)
        self.assertEqual(bytes(sock.sent), b"PX 3 4\n")
        self.assertEqual(px.rgba, (0, 255, 0, 255))
        self.assertEqual(conn.num_pixels_read, 1)

    def test_get_pixel_against_responder(self):
        responder = CanvasResponder()
        conn, _ = make_connection(responder=responder)

        canvas_service.put_pixel(conn, Pixel(7, 8, 0x11, 0x22, 0x33))
        px = canvas_service.get_pixel(conn, Pixel(7, 8))

        self.assertEqual(px.rgb, (0x11, 0x22, 0x33))
        self.assertEqual(responder.requests, [b"PX 7 8 112233", b"PX 7 8"])

    def test_unexpected_coords(self):
        """Test that a reply for another pixel fails and closes the connection."""
        conn, sock = make_connection(b"PX 3 4 ffffff\n")
        px = Pixel(9, 9)

        with self.assertRaises(UnexpectedCoordsError) as ctx:
            canvas_service.get_pixel(conn, px)

        self.assertEqual(ctx.exception.context['expected'], (9, 9))
        self.assertEqual(ctx.exception.context['received'], (3, 4))
        self.assertEqual(px.rgb, (0, 0, 0))
        self.assertFalse(conn.is_valid())
        self.assertEqual(conn.num_pixels_read, 0)

    def test_unexpected_coords_is_protocol_error(self):
        conn, _ = make_connection(b"PX 3 4 ffffff\n")
        with self.assertRaises(ProtocolError):
            canvas_service.get_pixel(conn, Pixel(4, 3))

    def test_malformed_pixel_reply(self):
        conn, _ = make_connection(b"PX 3 4\n")
        with self.assertRaises(ProtocolError):
            canvas_service.get_pixel(conn, Pixel(3, 4))
        self.assertFalse(conn.is_valid())

    def test_overlong_reply_line(self):
        conn, _ = make_connection(b"PX 3 4 " + b"f" * 60 + b"\n")
        with self.assertRaises(ProtocolError):
            canvas_service.get_pixel(conn, Pixel(3, 4))

    def test_get_pixel_wrong_type(self):
        conn, _ = make_connection()
        with self.assertRaises(InvalidArgumentError):
            canvas_service.get_pixel(conn, (3, 4))
        self.assertTrue(conn.is_valid())

    def test_use_after_failure_is_invalid_state(self):
        conn, _ = make_connection(b"garbage\n")
        with self.assertRaises(ProtocolError):
            canvas_service.get_pixel(conn, Pixel(0, 0))

        with self.assertRaises(InvalidStateError):
            canvas_service.get_pixel(conn, Pixel(0, 0))


if __name__ == '__main__':
    unittest.main()
