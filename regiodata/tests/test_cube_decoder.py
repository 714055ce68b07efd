from __future__ import annotations

import unittest

from regiodata.exceptions import MalformedCubeError
from regiodata.models import RawCube
from regiodata.services.cube_decoder import decode_cube, decode_locations
from regiodata.tests.utils import cube_from_series, make_cube
from regiodata.utils.cube_index import flat_index


def _cube(document) -> RawCube:
    return RawCube.model_validate(document)


class DecodeCubeTests(unittest.TestCase):
    def test_plain_cube(self) -> None:
        # unit(1) x geo(2) x time(3), index = g * 3 + t
        document = make_cube(
            [("unit", ["MIO_EUR"]), ("geo", ["AT11", "AT12"]), ("time", ["2017", "2018", "2019"])],
            {0: 1.0, 1: 2.0, 2: 3.0, 3: 4.0, 4: 5.0, 5: 6.0},
        )
        series_list = decode_cube(_cube(document))

        self.assertEqual(len(series_list), 1)
        self.assertEqual(
            series_list[0],
            {
                "AT11": {"2017": 1.0, "2018": 2.0, "2019": 3.0},
                "AT12": {"2017": 4.0, "2018": 5.0, "2019": 6.0},
            },
        )

    def test_geo_last_in_dimension_order(self) -> None:
        # time(2) x geo(2): index = t * 2 + g
        document = make_cube(
            [("time", ["2018", "2019"]), ("geo", ["BE10", "BE21"])],
            {0: 10.0, 1: 20.0, 2: 11.0, 3: 21.0},
        )
        series = decode_cube(_cube(document))[0]
        self.assertEqual(series["BE10"], {"2018": 10.0, "2019": 11.0})
        self.assertEqual(series["BE21"], {"2018": 20.0, "2019": 21.0})

    def test_not_available_status_is_absent(self) -> None:
        document = make_cube(
            [("geo", ["AT11"]), ("time", ["2018", "2019"])],
            {0: 1.5, 1: 0.0},
            status={0: ":"},
        )
        series = decode_cube(_cube(document))[0]
        self.assertIsNone(series["AT11"]["2018"])
        # zero is a value, not absence
        self.assertEqual(series["AT11"]["2019"], 0.0)

    def test_other_status_flags_keep_value(self) -> None:
        document = make_cube(
            [("geo", ["AT11"]), ("time", ["2018", "2019"])],
            {0: 1.5, 1: 2.5},
            status={0: "p", 1: "e"},
        )
        series = decode_cube(_cube(document))[0]
        self.assertEqual(series["AT11"], {"2018": 1.5, "2019": 2.5})

    def test_missing_value_without_status_is_absent(self) -> None:
        document = make_cube([("geo", ["AT11"]), ("time", ["2018", "2019"])], {1: 3.0})
        series = decode_cube(_cube(document))[0]
        self.assertEqual(series["AT11"], {"2018": None, "2019": 3.0})

    def test_dense_value_array(self) -> None:
        document = make_cube([("geo", ["AT11", "AT12"]), ("time", ["2019"])], {})
        document["value"] = [7.0, None]
        series = decode_cube(_cube(document))[0]
        self.assertEqual(series, {"AT11": {"2019": 7.0}, "AT12": {"2019": None}})

    def test_combined_dimension_gives_one_series_per_code(self) -> None:
        document = cube_from_series(
            {
                "Y_LT5": {"AT11": {"2019": 1.0}, "AT12": {"2019": 2.0}},
                "Y5-9": {"AT11": {"2019": 3.0}, "AT12": {"2019": None}},
            },
            combined_dimension="age",
        )
        series_list = decode_cube(_cube(document), "age")

        self.assertEqual(len(series_list), 2)
        self.assertEqual(series_list[0], {"AT11": {"2019": 1.0}, "AT12": {"2019": 2.0}})
        self.assertEqual(series_list[1], {"AT11": {"2019": 3.0}, "AT12": {"2019": None}})

    def test_re_encoding_recovers_flat_values(self) -> None:
        dimensions = [("age", ["Y_LT5", "Y5-9"]), ("geo", ["AT11", "AT12", "AT13"]), ("time", ["2018", "2019"])]
        values = {i: float(i * 10) for i in range(12) if i != 7}
        cube = _cube(make_cube(dimensions, values, status={7: ":"}))

        encoded = {}
        for a, series in enumerate(decode_cube(cube, "age")):
            for g, location in enumerate(["AT11", "AT12", "AT13"]):
                for t, year in enumerate(["2018", "2019"]):
                    value = series[location][year]
                    if value is not None:
                        encoded[flat_index([a, g, t], cube.size)] = value

        self.assertEqual(encoded, values)

    def test_size_disagrees_with_index(self) -> None:
        document = make_cube([("geo", ["AT11", "AT12"]), ("time", ["2019"])], {0: 1.0})
        document["size"] = [3, 1]
        with self.assertRaises(MalformedCubeError):
            decode_cube(_cube(document))

    def test_missing_time_dimension(self) -> None:
        document = make_cube([("unit", ["NR"]), ("geo", ["AT11"])], {0: 1.0})
        with self.assertRaises(MalformedCubeError):
            decode_cube(_cube(document))

    def test_missing_combined_dimension(self) -> None:
        document = make_cube([("geo", ["AT11"]), ("time", ["2019"])], {0: 1.0})
        with self.assertRaises(MalformedCubeError):
            decode_cube(_cube(document), "age")

    def test_unpinned_dimension_is_rejected(self) -> None:
        # unit left out of the query: two units come back
        document = make_cube(
            [("unit", ["MIO_EUR", "EUR_HAB"]), ("geo", ["AT11"]), ("time", ["2018"])],
            {0: 100.0, 1: 7.0},
        )
        with self.assertRaises(MalformedCubeError) as ctx:
            decode_cube(_cube(document))
        self.assertEqual(ctx.exception.details["dimension"], "unit")

    def test_combined_dimension_may_have_several_categories(self) -> None:
        document = make_cube(
            [("unit", ["NR"]), ("age", ["Y_LT5", "Y5-9"]), ("geo", ["AT11"]), ("time", ["2018"])],
            {0: 1.0, 1: 2.0},
        )
        series_list = decode_cube(_cube(document), "age")
        self.assertEqual(series_list, [{"AT11": {"2018": 1.0}}, {"AT11": {"2018": 2.0}}])
        with self.assertRaises(MalformedCubeError):
            decode_cube(_cube(document))

    def test_id_and_size_differ_in_length(self) -> None:
        document = make_cube([("geo", ["AT11"]), ("time", ["2019"])], {0: 1.0})
        document["size"] = [1, 1, 1]
        with self.assertRaises(MalformedCubeError):
            decode_cube(_cube(document))


class DecodeLocationsTests(unittest.TestCase):
    def test_code_to_label_in_index_order(self) -> None:
        document = make_cube(
            [("geo", ["AT12", "AT11"]), ("time", ["2021"])],
            {0: 1.0, 1: 2.0},
            labels={"geo": {"AT11": "Burgenland", "AT12": "Niederösterreich"}},
        )
        locations = decode_locations(_cube(document))
        self.assertEqual(list(locations), ["AT12", "AT11"])
        self.assertEqual(locations["AT11"], "Burgenland")


if __name__ == "__main__":
    unittest.main()
