import unittest
from dbmirror.services.type_map import map_firebird_type


class TestMapFirebirdType(unittest.TestCase):
    def assertMaps(self, cases):
        for args, expected in cases:
            with self.subTest(args=args):
                self.assertEqual(map_firebird_type(*args), expected)

    def test_integer_types(self):
        self.assertMaps([
            ((7, 0, 0, 0, None), "SMALLINT"),
            ((8, 0, 0, 0, None), "INTEGER"),
            ((16, 0, 0, 0, None), "BIGINT"),
        ])

    def test_float_types(self):
        self.assertMaps([
            ((10, 0, 0, 0, None), "REAL"),
            ((27, 0, 0, 0, None), "DOUBLE PRECISION"),
        ])

    def test_numeric_with_negative_scale(self):
        self.assertMaps([
            ((7, 0, 5, -2, None), "NUMERIC(5,2)"),
            ((8, 0, 10, -3, None), "NUMERIC(10,3)"),
            ((16, 0, 18, -4, None), "NUMERIC(18,4)"),
            ((26, 0, 30, -6, None), "NUMERIC(30,6)"),
        ])

    def test_numeric_precision_defaults_to_18(self):
        self.assertMaps([
            ((16, 0, 0, -2, None), "NUMERIC(18,2)"),
            ((8, 0, None, -1, None), "NUMERIC(18,1)"),
        ])

    def test_character_types(self):
        self.assertMaps([
            ((37, 100, 0, 0, None), "VARCHAR(100)"),
            ((14, 50, 0, 0, None), "CHAR(50)"),
        ])

    def test_character_length_defaults(self):
        self.assertMaps([
            ((37, 0, 0, 0, None), "VARCHAR(255)"),
            ((37, None, 0, 0, None), "VARCHAR(255)"),
            ((37, -4, 0, 0, None), "VARCHAR(255)"),
            ((14, 0, 0, 0, None), "CHAR(1)"),
            ((14, None, 0, 0, None), "CHAR(1)"),
        ])

    def test_date_time_types(self):
        self.assertMaps([
            ((12, 0, 0, 0, None), "DATE"),
            ((13, 0, 0, 0, None), "TIME"),
            ((35, 0, 0, 0, None), "TIMESTAMP"),
            ((28, 0, 0, 0, None), "TIME WITH TIME ZONE"),
            ((29, 0, 0, 0, None), "TIMESTAMP WITH TIME ZONE"),
        ])

    def test_blob_types(self):
        self.assertMaps([
            ((261, 0, 0, 0, 1), "TEXT"),
            ((261, 0, 0, 0, 0), "BYTEA"),
            ((261, 0, 0, 0, None), "BYTEA"),
        ])

    def test_int128_holds_all_39_digits(self):
        declared = map_firebird_type(26, 16, 0, 0, None)
        self.assertEqual(declared, "NUMERIC(39,0)")
        precision = int(declared[len("NUMERIC("):].split(",")[0])
        self.assertGreaterEqual(precision, len(str(2 ** 127 - 1)))
        self.assertGreaterEqual(precision, len(str(-2 ** 127).lstrip("-")))

    def test_decfloat_falls_back_to_text(self):
        self.assertMaps([
            ((24, 8, 16, 0, None), "TEXT"),
            ((25, 16, 34, 0, None), "TEXT"),
        ])

    def test_boolean(self):
        self.assertEqual(map_firebird_type(23, 0, 0, 0, None), "BOOLEAN")

    def test_unknown_types_fall_back_to_text(self):
        self.assertMaps([
            ((999, 0, 0, 0, None), "TEXT"),
            ((None, None, None, None, None), "TEXT"),
            ((40, 10, 0, 0, None), "TEXT"),
        ])

    def test_missing_scale_is_not_numeric(self):
        self.assertEqual(map_firebird_type(8, 4, 9, None, None), "INTEGER")

    def test_is_deterministic(self):
        args = (37, 80, 0, 0, None)
        self.assertEqual({map_firebird_type(*args) for _ in range(5)}, {"VARCHAR(80)"})


if __name__ == '__main__':
    unittest.main()
