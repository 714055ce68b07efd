from __future__ import annotations

import unittest

from pydantic import ValidationError

from regiodata.exceptions import IndicatorDefinitionError
from regiodata.models import IndicatorDefinition, SeriesDefinition
from regiodata.services.indicator_catalog import (
    get_definition,
    get_indicator_definitions,
    parse_catalog,
)


class CatalogTests(unittest.TestCase):
    def test_shipped_catalog_loads(self) -> None:
        definitions = get_indicator_definitions()
        self.assertEqual(len(definitions), 87)
        for name, definition in definitions.items():
            with self.subTest(indicator=name):
                self.assertEqual(definition.name, name)
                self.assertTrue(definition.endpoint)
                self.assertTrue(definition.description)

    def test_endpoint_is_root_plus_suffix(self) -> None:
        self.assertEqual(get_definition("GVA").endpoint, "nama_10r_3gva")
        self.assertEqual(get_definition("GVAgr").endpoint, "nama_10r_2gvagr")
        # no suffix: the category root
        self.assertEqual(get_definition("GDP").endpoint, "nama_10r_3gdp")
        # empty root: the suffix alone
        self.assertEqual(get_definition("EMPL").endpoint, "nama_10r_3empers")

    def test_additional_endpoint_is_absolute(self) -> None:
        definition = get_definition("GVApc")
        self.assertEqual(definition.additional_definition.endpoint, "nama_10r_3popgdp")
        self.assertEqual(definition.compose, "per_thousand_ratio")

    def test_type_comes_from_category(self) -> None:
        self.assertEqual(get_definition("GDP").type, "ECONOMIC")
        self.assertEqual(get_definition("EDUh").type, "KNOWLEDGE")
        self.assertEqual(get_definition("POPdens").type, "TBD")

    def test_dependency_ratio_definition(self) -> None:
        definition = get_definition("OADr")
        self.assertEqual(definition.combined_dimension, "age")
        self.assertEqual(definition.reduce, "sum")
        self.assertEqual(definition.combined_instances[0], "Y65-69")
        self.assertEqual(len(definition.combined_instances), 6)
        additional = definition.additional_definition
        self.assertEqual(additional.combined_dimension, "age")
        self.assertEqual(len(additional.combined_instances), 10)

    def test_metadata(self) -> None:
        metadata = get_definition("GDPdens").metadata
        self.assertEqual(metadata.unit_of_measure, "M€/Km^2")
        self.assertEqual(metadata.default_year, 2018)
        self.assertEqual(metadata.type, "ECONOMIC")

    def test_unknown_indicator(self) -> None:
        with self.assertRaises(IndicatorDefinitionError):
            get_definition("NOPE")

    def test_duplicate_name_across_categories(self) -> None:
        entry = {"description": "d", "unit_of_measure": "%", "default_year": 2019}
        raw = {
            "A": {"type": "TBD", "endpoint": "a", "indicators": {"X": entry}},
            "B": {"type": "TBD", "endpoint": "b", "indicators": {"X": entry}},
        }
        with self.assertRaises(IndicatorDefinitionError):
            parse_catalog(raw)

    def test_invalid_entry_names_the_indicator(self) -> None:
        raw = {
            "A": {
                "type": "TBD",
                "endpoint": "a",
                "indicators": {
                    "BAD": {
                        "description": "d",
                        "unit_of_measure": "%",
                        "default_year": 2019,
                        "composite": True,
                    }
                },
            }
        }
        with self.assertRaises(IndicatorDefinitionError) as ctx:
            parse_catalog(raw)
        self.assertEqual(ctx.exception.indicator, "BAD")


class DefinitionValidationTests(unittest.TestCase):
    def test_list_value_requires_combined_dimension(self) -> None:
        with self.assertRaises(ValidationError):
            SeriesDefinition(endpoint="x", dimensions={"age": ["Y_LT5", "Y5-9"]})

    def test_combined_dimension_requires_reducer(self) -> None:
        with self.assertRaises(ValidationError):
            SeriesDefinition(endpoint="x", dimensions={"age": ["Y_LT5"]}, combined_dimension="age")

    def test_combined_dimension_must_be_a_list(self) -> None:
        with self.assertRaises(ValidationError):
            SeriesDefinition(endpoint="x", dimensions={"age": "Y_LT5"}, combined_dimension="age", reduce="sum")

    def test_reducer_without_combined_dimension(self) -> None:
        with self.assertRaises(ValidationError):
            SeriesDefinition(endpoint="x", reduce="sum")

    def test_unknown_reducer(self) -> None:
        with self.assertRaises(ValidationError):
            SeriesDefinition(endpoint="x", dimensions={"age": ["Y_LT5"]}, combined_dimension="age", reduce="avg")

    def test_unknown_composer(self) -> None:
        with self.assertRaises(ValidationError):
            IndicatorDefinition(
                name="X",
                endpoint="x",
                description="d",
                unit_of_measure="%",
                default_year=2019,
                composite=True,
                compose="difference",
                additional_definition={"endpoint": "y"},
            )

    def test_compose_on_non_composite(self) -> None:
        with self.assertRaises(ValidationError):
            IndicatorDefinition(
                name="X",
                endpoint="x",
                description="d",
                unit_of_measure="%",
                default_year=2019,
                compose="ratio",
            )

    def test_definitions_are_immutable(self) -> None:
        definition = get_definition("GDP")
        with self.assertRaises(ValidationError):
            definition.endpoint = "other"


if __name__ == "__main__":
    unittest.main()
