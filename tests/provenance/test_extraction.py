"""
Tests for extraction of component configurations.
"""

import pytest

from reprokit.errors import ExtractionError
from reprokit.provenance import (
    ComponentConfig,
    ComponentRef,
    DataSourceProvenance,
    ListProvenance,
    MapProvenance,
    PrimitiveProvenance,
    TrainerProvenance,
    extract_configuration,
    order_provenances,
)


class TestExtractConfiguration:
    """Test suite for extract_configuration."""

    def test_scenario_configs(self, scenario_provenance):
        configs = extract_configuration(scenario_provenance)

        assert [config.name for config in configs] == ["CSVSource-0", "LinearTrainer-2"]
        source, trainer = configs
        assert source.class_name == "CSVSource"
        assert source.properties == {"path": "train.csv"}
        assert trainer.properties == {"seed": 42}

    def test_instance_values_are_not_configuration(self, scenario_provenance):
        trainer_config = extract_configuration(scenario_provenance)[-1]
        assert "invocation-count" not in trainer_config.properties

    def test_nested_components_are_referenced(self):
        inner = TrainerProvenance("Inner", configured={"rate": PrimitiveProvenance(0.1)})
        outer = TrainerProvenance(
            "Outer",
            configured={"inner_trainer": inner, "size": PrimitiveProvenance(3)},
        )

        configs = extract_configuration(outer)

        assert [config.name for config in configs] == ["Inner-0", "Outer-1"]
        assert configs[1].properties["inner_trainer"] == ComponentRef("Inner-0")
        assert configs[1].references() == ["Inner-0"]

    def test_lists(self):
        members = ListProvenance((TrainerProvenance("A"), TrainerProvenance("B")))
        columns = ListProvenance((PrimitiveProvenance("x"), PrimitiveProvenance("y")))
        root = TrainerProvenance("Root", configured={"members": members, "columns": columns})

        config = extract_configuration(root)[-1]

        assert config.properties["members"] == [ComponentRef("A-0"), ComponentRef("B-1")]
        assert config.properties["columns"] == ["x", "y"]

    def test_precomputed_ordering(self, scenario_provenance):
        ordering = order_provenances(scenario_provenance)
        assert extract_configuration(scenario_provenance, ordering) == extract_configuration(scenario_provenance)

    def test_mixed_list_rejected(self):
        mixed = ListProvenance((PrimitiveProvenance(1), TrainerProvenance("A")))
        with pytest.raises(ExtractionError, match="mixes"):
            extract_configuration(TrainerProvenance("Root", configured={"bad": mixed}))

    def test_nested_list_rejected(self):
        nested = ListProvenance((ListProvenance((PrimitiveProvenance(1),)),))
        with pytest.raises(ExtractionError, match="nested lists"):
            extract_configuration(TrainerProvenance("Root", configured={"bad": nested}))

    def test_map_value_rejected(self):
        value = MapProvenance({"k": PrimitiveProvenance(1)})
        with pytest.raises(ExtractionError, match="Root-0.bad"):
            extract_configuration(TrainerProvenance("Root", configured={"bad": value}))

    def test_unconfigured_reference_rejected(self):
        source = DataSourceProvenance("InMemoryDataSource", is_configured=False)
        with pytest.raises(ExtractionError, match="InMemoryDataSource"):
            extract_configuration(TrainerProvenance("Root", configured={"source": source}))

    def test_unconfigured_nodes_emit_nothing(self):
        source = DataSourceProvenance("InMemoryDataSource", is_configured=False)
        assert extract_configuration(source) == []

    def test_config_defaults(self):
        config = ComponentConfig(name="A-0", class_name="A")
        assert config.properties == {}
        assert config.references() == []
