"""
Tests for the File identifier model.

Covers:
- Parsing and rendering file names with and without paths
- Parameters embedded in file names
- Random numeric names
- Path encoding and URI encoding/decoding round trips
- Missing extension errors
"""

import random
import re

import pytest
from django.test import SimpleTestCase

from signing.exceptions import InvalidPathError, MissingExtensionError
from signing.files import File
from signing.parameters import ParameterDict

FROZEN_NOW = 1574000000


def make_params():
    return ParameterDict().add('version').add('size').add('compression')


# =============================================================================
# FILE NAME TESTS
# =============================================================================

class TestFileName(SimpleTestCase):
    """Tests for rendering canonical file names."""

    def setUp(self):
        self.params = make_params()

    def test_simple_file_name(self):
        file = File(self.params).set('/path/to/file/image.jpg')
        self.assertEqual(file.get_file_name(), '/path/to/file/image.jpg')
        self.assertEqual(str(file), '/path/to/file/image.jpg')

    def test_file_name_without_leading_separator(self):
        file = File(self.params).set('path/to/file/image.jpg')
        self.assertEqual(file.get_file_name(), 'path/to/file/image.jpg')

    def test_file_name_without_path(self):
        file = File(self.params).set('image.jpg')
        self.assertEqual(file.get_file_name(), 'image.jpg')
        self.assertEqual(file.get_path(), '')

    def test_file_name_created_by_hand(self):
        file = File(self.params).set_name('image').set_path('path/to/file').set_extension('png')
        self.assertEqual(file.get_file_name(), 'path/to/file/image.png')

    def test_path_is_normalized(self):
        file = File(self.params)
        self.assertEqual(file.set_path('/a/b//').get_path(), '/a/b/')
        self.assertEqual(file.set_path('.').get_path(), '')
        self.assertEqual(file.set_path('/').get_path(), '')
        self.assertEqual(file.set_path('').get_path(), '')

    def test_extension_is_dot_prefixed(self):
        file = File(self.params).set_extension('.png')
        self.assertEqual(file.get_extension(), '.png')

    def test_file_name_with_parameters(self):
        file = File(self.params).set('/path/to/file/image.jpg')
        file.parameters.add('version', '1').add('size', '1080x1080')
        self.assertEqual(file.get_file_name(), '/path/to/file/image_v1_s1080x1080.jpg')

    def test_file_name_with_one_parameter(self):
        file = File(self.params).set('/path/to/file/image.jpg')
        file.parameters.add('size', '1080x1080')
        self.assertEqual(file.get_file_name(), '/path/to/file/image_s1080x1080.jpg')

    def test_parameters_read_from_file_name(self):
        file = File(self.params).set('/path/to/file/image_s1080x1080.jpg')
        self.assertEqual(file.parameters.count(), 1)
        self.assertEqual(file.parameters.get('size'), '1080x1080')
        self.assertEqual(file.get_name(with_extension=True), 'image.jpg')

    def test_parameters_read_from_file_name_can_change(self):
        file = File(self.params).set('/path/to/file/image_s1080x1080.jpg')
        file.parameters.add('size', '1024x1024')
        self.assertEqual(file.get_file_name(), '/path/to/file/image_s1024x1024.jpg')

    def test_file_name_with_parameters_changing_order(self):
        file = File(self.params).set('/path/to/file/image.jpg').sort_in_file_name(['size', 'compression'])
        file.parameters.add('version', '1').add('size', '1080x1080')
        self.assertEqual(file.get_file_name(), '/path/to/file/image_s1080x1080_v1.jpg')

    def test_parameters_read_from_file_name_changing_order(self):
        file = File(self.params).set('/path/to/file/image_v1_s1080x1080.jpg').sort_in_file_name(['size', 'compression'])
        self.assertEqual(file.get_file_name(), '/path/to/file/image_s1080x1080_v1.jpg')

    def test_custom_separator(self):
        file = File(self.params, separator='-').set('/a/image-v2.jpg')
        self.assertEqual(file.parameters.get('version'), '2')
        self.assertEqual(file.get_name(), 'image')
        self.assertEqual(file.get_file_name(), '/a/image-v2.jpg')

    def test_change_separator(self):
        file = File(self.params).set('/a/image.jpg').change_separator('.')
        file.parameters.add('version', '2')
        self.assertEqual(file.get_separator(), '.')
        self.assertEqual(file.get_file_name(), '/a/image.v2.jpg')

    def test_root_path_is_no_directory(self):
        file = File(self.params).set('/image.jpg')
        self.assertEqual(file.get_path(), '')
        self.assertEqual(file.get_file_name(), 'image.jpg')
        self.assertEqual(file.set_path('//').get_path(), '')

    def test_longest_alias_wins_in_file_name(self):
        params = ParameterDict().add('version').add('variant', 'vv')
        file = File(params).set('/a/image_vv2.jpg')
        self.assertEqual(file.parameters.params(), {'variant': '2'})
        self.assertEqual(file.get_name(), 'image')

    def test_overlapping_aliases_in_file_name(self):
        params = ParameterDict().add('version').add('variant', 'vv')
        file = File(params).set('/a/image_v1_vv2.jpg')
        self.assertEqual(file.parameters.params(), {'version': '1', 'variant': '2'})
        self.assertEqual(file.get_order_of_params_in_file_name(), ['v', 'vv'])

    def test_missing_extension(self):
        with self.assertRaises(MissingExtensionError):
            File(self.params).set('image')

    def test_missing_extension_created_by_hand(self):
        file = File(self.params).set_name('image').set_path('path/to/file')
        with self.assertRaises(MissingExtensionError):
            file.get_file_name()
        with self.assertRaises(MissingExtensionError):
            file.encode_to_uri()


# =============================================================================
# RANDOM NAME TESTS
# =============================================================================

class TestRandomName:
    """Tests for File.set_random_name."""

    def test_unique_numeric_file_name(self):
        file = File(make_params(), rng=random.Random(5), clock=lambda: FROZEN_NOW)
        file.set_random_name().set_path('path/to/file/').set_extension('png')
        assert re.fullmatch(r'path/to/file/[0-9]{8,}_[0-9]{15,}_[0-9]{1,19}\.png', file.get_file_name())

    def test_unique_numeric_file_name_with_parameters(self):
        file = File(make_params(), rng=random.Random(5), clock=lambda: FROZEN_NOW)
        file.set_random_name().set_path('path/to/file/').set_extension('png')
        file.parameters.add('version', '1').add('size', '1080x1080')
        assert re.fullmatch(
            r'path/to/file/[0-9]{8,}_[0-9]{15,}_[0-9]{1,19}_v1_s1080x1080\.png',
            file.get_file_name(),
        )

    def test_scaled_seconds_use_a_known_factor(self):
        file = File(make_params(), rng=random.Random(9), clock=lambda: FROZEN_NOW).set_random_name()
        seconds, microtime, digits = file.get_name().split('_')
        assert int(seconds) in {round(FROZEN_NOW * factor) for factor in File.RANDOM_NAME_FACTORS}
        assert FROZEN_NOW * 150000 <= int(microtime) <= FROZEN_NOW * 300000
        assert not digits.startswith('0')

    def test_random_names_differ(self):
        file = File(make_params(), rng=random.Random(11), clock=lambda: FROZEN_NOW)
        first = file.set_random_name().get_name()
        second = file.set_random_name().get_name()
        assert first != second


# =============================================================================
# PATH & URI ENCODING TESTS
# =============================================================================

class TestFileEncoding:
    """Tests for encode_path, decode_path, encode_to_uri and decode_uri."""

    @pytest.fixture
    def file(self):
        return File(make_params(), rng=random.Random(1))

    def test_encoded_path(self, file):
        file.set('/2019/11/image.jpg').parameters.add('size', '1080x1080')
        assert re.fullmatch(r'/[a-f0-9]+/', file.encode_path())

    def test_encoding_does_not_change_the_file(self, file):
        file.set('/2019/11/image.jpg')
        file.encode_path()
        assert file.get_file_name() == '/2019/11/image.jpg'

    def test_decoded_path(self, file):
        file.set('/2019/11/image.jpg').parameters.add('size', '1080x1080')
        encoded = file.encode_path()
        assert file.decode_path(encoded) == '/2019/11/'
        assert file.get_file_name() == '/2019/11/image_s1080x1080.jpg'

    def test_folder_with_leading_zeros(self, file):
        file.set('/2020/03/path/image.jpg')
        assert file.decode_path(file.encode_path()) == '/2020/03/path/'

    def test_encoded_uri(self, file):
        file.set('/2019/11/image.jpg').sort_in_file_name(['size'])
        file.parameters.add('version', '1').add('size', '1080x1080')
        assert re.fullmatch(r'/v1/s1080x1080/[a-f0-9]+/image\.jpg', file.encode_to_uri())

    def test_encoded_uri_follows_display_order(self, file):
        file.set('/2019/11/image.jpg').sort_to_display(['size'])
        file.parameters.add('version', '1').add('size', '1080x1080')
        assert re.fullmatch(r'/s1080x1080/v1/[a-f0-9]+/image\.jpg', file.encode_to_uri())

    def test_encoded_uri_without_path_or_parameters(self, file):
        file.set('image.jpg')
        assert file.encode_to_uri() == '/image.jpg'

    def test_order_of_params_in_file_name(self, file):
        file.set('/2019/11/image.jpg').sort_in_file_name(['size'])
        file.parameters.add('version', '1').add('size', '1080x1080')
        assert file.get_order_of_params_in_file_name() == ['s', 'v']

    def test_order_of_params_without_parameters(self, file):
        file.set('/2019/11/image.jpg')
        assert file.get_order_of_params_in_file_name() == []

    def test_decoded_uri(self, file):
        file.set('/2019/11/image.jpg').sort_in_file_name(['size'])
        file.parameters.add('version', '1').add('size', '1080x1080')

        uri = file.encode_to_uri()
        order = file.get_order_of_params_in_file_name()

        assert File.decode_uri(uri, order) == '/2019/11/image_s1080x1080_v1.jpg'

    @pytest.mark.parametrize('file_name, params, display, in_file_name', [
        ('image.jpg', {}, [], []),
        ('/2019/11/image.jpg', {}, [], []),
        ('/path/to/file/image.jpg', {'version': '1', 'size': '1080x1080'}, [], []),
        ('/users/42/photo.png', {'version': '2', 'size': '10', 'compression': '9'}, ['compression', 'size'], ['size']),
        ('/docs/report.final.pdf', {'compression': ''}, [], []),
    ])
    def test_uri_round_trip(self, file, file_name, params, display, in_file_name):
        file.set(file_name).sort_to_display(display).sort_in_file_name(in_file_name)
        file.parameters.fill(params)

        decoded = File.decode_uri(file.encode_to_uri(), file.get_order_of_params_in_file_name())

        assert decoded == file.get_file_name()

    def test_file_name_encoded(self, file):
        file.set('/2019/11/image.jpg').parameters.add('size', '10')
        assert re.fullmatch(r'/[a-f0-9]+/image_s10\.jpg', file.get_file_name_encoded())
        assert file.get_file_name() == '/2019/11/image_s10.jpg'

    def test_file_name_decoded(self, file):
        file.set('/2019/11/image.jpg').parameters.add('size', '10')

        encoded = File(make_params()).set(file.get_file_name_encoded())

        assert encoded.get_file_name_decoded() == '/2019/11/image_s10.jpg'
        assert encoded.get_path() == '/2019/11/'

    def test_file_name_encoded_without_path(self, file):
        file.set('image.jpg')
        assert file.get_file_name_encoded() == 'image.jpg'
        assert file.get_file_name_decoded() == 'image.jpg'

    def test_decoded_uri_with_overlapping_aliases(self):
        params = ParameterDict().add('version').add('variant', 'vv')
        file = File(params).set('/a/image.jpg').sort_to_display(['variant'])
        file.parameters.add('version', '1').add('variant', '2')

        uri = file.encode_to_uri()

        assert uri.startswith('/vv2/v1/')
        assert File.decode_uri(uri, file.get_order_of_params_in_file_name()) == '/a/image_v1_vv2.jpg'

    def test_relative_path_decodes_as_absolute(self, file):
        file.set('path/to/file/image.jpg')
        assert File.decode_uri(file.encode_to_uri(), []) == '/path/to/file/image.jpg'

    def test_decode_uri_with_custom_separator(self):
        file = File(make_params(), separator='-').set('/a/image.jpg')
        file.parameters.add('version', '3')
        order = file.get_order_of_params_in_file_name()
        assert File.decode_uri(file.encode_to_uri(), order, separator='-') == '/a/image-v3.jpg'

    def test_decode_uri_with_malformed_path(self):
        with pytest.raises(InvalidPathError):
            File.decode_uri('/abc/image.jpg', [])
