"""
Tests for the numpy region helpers.
"""

import unittest

import numpy as np

from py2pixelflut.core.errors import InvalidArgumentError
from py2pixelflut.models.pixel import Pixel
from py2pixelflut.utils.regions import (
    array_to_pixels,
    invert_pixels,
    pixels_to_array,
    region_pixels,
)


class TestRegionPixels(unittest.TestCase):

    def test_row_major_order(self):
        pixels = region_pixels(10, 20, 3, 2)
        self.assertEqual(
            [px.coords for px in pixels],
            [(10, 20), (11, 20), (12, 20), (10, 21), (11, 21), (12, 21)]
        )
        self.assertTrue(all(isinstance(px.x, int) for px in pixels))

    def test_empty_region(self):
        self.assertEqual(region_pixels(0, 0, 0, 5), [])

    def test_region_at_canvas_edge(self):
        pixels = region_pixels(65534, 65535, 2, 1)
        self.assertEqual([px.coords for px in pixels], [(65534, 65535), (65535, 65535)])

    def test_out_of_range(self):
        for args in ((65535, 0, 2, 1), (-1, 0, 1, 1), (0, 0, -1, 1)):
            with self.subTest(args=args):
                with self.assertRaises(InvalidArgumentError):
                    region_pixels(*args)


class TestArrays(unittest.TestCase):

    def test_pixels_to_array(self):
        pixels = [Pixel(0, 0, 1, 2, 3), Pixel(1, 0, 4, 5, 6, 7)]

        array = pixels_to_array(pixels, 2, 1)

        self.assertEqual(array.shape, (1, 2, 4))
        self.assertEqual(array.dtype, np.uint8)
        np.testing.assert_array_equal(array[0, 1], [4, 5, 6, 7])

    def test_pixels_to_array_wrong_count(self):
        with self.assertRaises(InvalidArgumentError):
            pixels_to_array([Pixel(0, 0)], 2, 2)

    def test_rgb_array_to_pixels(self):
        array = np.zeros((2, 3, 3), dtype=np.uint8)
        array[1, 2] = (9, 8, 7)

        pixels = array_to_pixels(array, x=100, y=200)

        self.assertEqual(len(pixels), 6)
        self.assertEqual(pixels[-1].coords, (102, 201))
        self.assertEqual(pixels[-1].rgba, (9, 8, 7, 255))

    def test_array_round_trip_keeps_alpha(self):
        array = np.arange(2 * 2 * 4, dtype=np.uint8).reshape(2, 2, 4)
        pixels = array_to_pixels(array)
        np.testing.assert_array_equal(pixels_to_array(pixels, 2, 2), array)

    def test_bad_shape(self):
        with self.assertRaises(InvalidArgumentError):
            array_to_pixels(np.zeros((4, 4), dtype=np.uint8))


class TestInvertPixels(unittest.TestCase):

    def test_invert_in_place(self):
        pixels = [Pixel(0, 0, 0, 128, 255, 17)]

        result = invert_pixels(pixels)

        self.assertIs(result, pixels)
        self.assertEqual(pixels[0].rgba, (255, 127, 0, 17))

    def test_invert_empty(self):
        self.assertEqual(invert_pixels([]), [])


if __name__ == '__main__':
    unittest.main()
