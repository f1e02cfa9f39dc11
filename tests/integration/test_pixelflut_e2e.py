"""End-to-end integration tests over real loopback sockets.

These tests drive the public API against MockPixelflutServer, which runs
in a background thread on an ephemeral port.
"""

import pytest

from py2pixelflut import (
    ConnectError,
    InvalidStateError,
    Pixel,
    PixelflutClient,
    ProtocolError,
    ReadTooMuchError,
    UnexpectedCoordsError,
    open_connection,
)
from py2pixelflut.models.connection import ConnectionState
from py2pixelflut.services import bulk_service, canvas_service
from py2pixelflut.services.configuration_service import ClientSettings
from py2pixelflut.utils.regions import invert_pixels, region_pixels
from mock_pixelflut_server import MockPixelflutServer


@pytest.fixture
def server():
    """Running mock server, stopped after the test."""
    srv = MockPixelflutServer(width=64, height=48)
    srv.start()
    yield srv
    srv.stop()


def server_with_mode(reply_mode):
    srv = MockPixelflutServer(reply_mode=reply_mode)
    srv.start()
    return srv


@pytest.fixture
def settings(server):
    return ClientSettings(ip_address=server.host, port=server.port, buffer_size=256, batch_limit=50)


class TestConnection:
    """Connection lifecycle against a live server."""

    def test_open_and_close(self, server):
        conn = open_connection("127.0.0.1", str(server.port))
        assert conn.is_valid()
        assert conn.get_connection_info() == ("127.0.0.1", server.port)

        conn.close()
        conn.close()
        assert conn.state == ConnectionState.DISCONNECTED

    def test_connect_after_server_stopped(self):
        srv = MockPixelflutServer()
        srv.start()
        port = srv.port
        srv.stop()

        with pytest.raises(ConnectError):
            open_connection("127.0.0.1", port, timeout=1.0)


class TestCanvasOperations:
    """Unbuffered operations."""

    def test_get_size(self, server):
        with open_connection("127.0.0.1", server.port) as conn:
            assert canvas_service.get_size(conn) == (64, 48)

    def test_put_then_get(self, server):
        with open_connection("127.0.0.1", server.port) as conn:
            canvas_service.put_pixel(conn, Pixel(3, 4, 255, 0, 0))
            px = canvas_service.get_pixel(conn, Pixel(3, 4))

            assert px.rgba == (255, 0, 0, 255)
            assert conn.num_pixels_written == 1
            assert conn.num_pixels_read == 1

    def test_alpha_is_sent(self, server):
        with open_connection("127.0.0.1", server.port) as conn:
            canvas_service.put_pixel(conn, Pixel(1, 1, 0x10, 0x20, 0x30, 0x80), use_alpha=True)
            canvas_service.get_pixel(conn, Pixel(1, 1))

        assert server.canvas[(1, 1)] == (0x10, 0x20, 0x30)


class TestBulkOperations:
    """Buffered and pipelined operations."""

    def test_round_trip_region(self, server):
        pixels = region_pixels(0, 0, 40, 30)
        for px in pixels:
            px.set_rgb(px.x * 6, px.y * 8, 99)

        with open_connection("127.0.0.1", server.port) as conn:
            bulk_service.put_pixels(conn, pixels, bytearray(4096))
            readback = region_pixels(0, 0, 40, 30)
            bulk_service.get_pixels(conn, readback, bytearray(4096), batch_limit=100)

            assert [px.rgb for px in readback] == [px.rgb for px in pixels]
            assert conn.num_pixels_written == 1200
            assert conn.num_pixels_read == 1200

    @pytest.mark.parametrize("buffer_size", [32, 33, 1000])
    @pytest.mark.parametrize("batch_limit", [0, 1, 64])
    def test_get_pixels_buffer_and_batch_variants(self, server, buffer_size, batch_limit):
        with open_connection("127.0.0.1", server.port) as conn:
            pixels = region_pixels(0, 0, 16, 8)
            bulk_service.get_pixels(conn, pixels, bytearray(buffer_size), batch_limit)

            assert all(px.rgba == (0, 0, 0, 255) for px in pixels)
            assert conn.is_valid()


class TestProtocolFailures:
    """Misbehaving servers close the connection."""

    def test_garbage_reply(self):
        srv = server_with_mode("garbage")
        try:
            conn = open_connection("127.0.0.1", srv.port)
            with pytest.raises(ProtocolError):
                canvas_service.get_size(conn)
            assert conn.state == ConnectionState.ERROR
            with pytest.raises(InvalidStateError):
                canvas_service.get_size(conn)
        finally:
            srv.stop()

    def test_wrong_coords(self):
        srv = server_with_mode("wrong_coords")
        try:
            conn = open_connection("127.0.0.1", srv.port)
            with pytest.raises(UnexpectedCoordsError):
                bulk_service.get_pixels(conn, region_pixels(0, 0, 4, 4), bytearray(64), 0)
            assert not conn.is_valid()
        finally:
            srv.stop()

    def test_duplicate_reply(self):
        srv = server_with_mode("duplicate")
        try:
            conn = open_connection("127.0.0.1", srv.port)
            with pytest.raises((ReadTooMuchError, UnexpectedCoordsError)):
                bulk_service.get_pixels(conn, region_pixels(0, 0, 4, 1), bytearray(64), 0)
            assert not conn.is_valid()
        finally:
            srv.stop()


class TestClient:
    """PixelflutClient facade."""

    def test_invert_region(self, server, settings):
        server.canvas[(2, 2)] = (10, 20, 30)

        with PixelflutClient(settings) as client:
            assert client.get_size() == (64, 48)
            pixels = region_pixels(0, 0, 5, 5)
            client.get_pixels(pixels)
            client.put_pixels(invert_pixels(pixels))
            assert client.get_pixel(2, 2).rgb == (245, 235, 225)
            assert client.get_pixel(Pixel(0, 0)).rgb == (255, 255, 255)

            assert client.num_pixels_read == 27
            assert client.num_pixels_written == 25

        assert client.state == ConnectionState.DISCONNECTED

    def test_reconnect_after_failure(self, server, settings):
        client = PixelflutClient(settings)
        client.connect()
        client.connection.close()
        assert not client.is_connected()

        client.connect()
        assert client.get_size() == (64, 48)
        client.close()
