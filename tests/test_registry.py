"""
Tests for the component catalogue and the per-attempt component registry.
"""

import unittest

from reprokit.errors import ReconstructionError
from reprokit.provenance import ComponentConfig, ComponentRef
from reprokit.registry import (
    ComponentCatalogue,
    ComponentKind,
    ComponentRegistry,
    catalogue,
)


class Source:
    def __init__(self, path, rows=10):
        if rows < 0:
            raise ValueError("rows must be non-negative")
        self.path = path
        self.rows = rows


class Learner:
    def __init__(self, rate=0.1, inner=None, members=None, invocation_count=0):
        self.rate = rate
        self.inner = inner
        self.members = members or []
        self.invocation_count = invocation_count


class Wrapper:
    def __init__(self, source):
        if not isinstance(source, Source):
            raise TypeError("Wrapper needs a Source")
        self.source = source


def _catalogue():
    components = ComponentCatalogue()
    components.register("Source", Source, ComponentKind.DATA_SOURCE)
    components.register("Learner", Learner, ComponentKind.TRAINER)
    components.register("Wrapper", Wrapper, ComponentKind.DATASET)
    components.register("Inline", Source, ComponentKind.DATA_SOURCE, configurable=False)
    return components


class TestComponentCatalogue(unittest.TestCase):
    """Test ComponentCatalogue."""

    def setUp(self):
        self.catalogue = _catalogue()

    def test_register_and_get(self):
        component_type = self.catalogue.get("Learner")
        self.assertIs(component_type.factory, Learner)
        self.assertIs(component_type.kind, ComponentKind.TRAINER)
        self.assertEqual(component_type.metadata["factory"], "Learner")
        self.assertTrue(self.catalogue.has_component("Learner"))
        self.assertIsNone(self.catalogue.get("Missing"))

    def test_register_rejects_duplicates_and_bad_input(self):
        with self.assertRaises(ValueError):
            self.catalogue.register("Learner", Learner, ComponentKind.TRAINER)
        with self.assertRaises(ValueError):
            self.catalogue.register("", Learner, ComponentKind.TRAINER)
        with self.assertRaises(ValueError):
            self.catalogue.register("NotCallable", 42, ComponentKind.TRAINER)

    def test_resolve_unknown(self):
        with self.assertRaises(ReconstructionError) as context:
            self.catalogue.resolve("Missing")
        self.assertIn("Missing", str(context.exception))

    def test_list_components(self):
        self.assertEqual(
            self.catalogue.list_components(ComponentKind.DATA_SOURCE), ["Source", "Inline"]
        )
        self.assertEqual(len(self.catalogue.list_components()), 4)

    def test_is_configurable(self):
        self.assertTrue(self.catalogue.is_configurable("Source", ComponentKind.DATA_SOURCE))
        self.assertFalse(self.catalogue.is_configurable("Inline", ComponentKind.DATA_SOURCE))
        self.assertFalse(self.catalogue.is_configurable("Source", ComponentKind.TRAINER))
        self.assertFalse(self.catalogue.is_configurable("Missing", ComponentKind.TRAINER))

    def test_wrap_dataset(self):
        wrapped = self.catalogue.wrap_dataset("Wrapper", Source("x.csv"))
        self.assertEqual(wrapped.source.path, "x.csv")

        with self.assertRaises(ReconstructionError):
            self.catalogue.wrap_dataset("Wrapper", "not a source")
        with self.assertRaises(ReconstructionError):
            self.catalogue.wrap_dataset("Learner", Source("x.csv"))

    def test_builtin_components_registered(self):
        import reprokit  # noqa: F401

        for identifier in ["CSVDataSource", "InMemoryDataSource", "MutableDataset",
                           "LinearSGDTrainer", "LibSVMClassificationTrainer",
                           "LibSVMRegressionTrainer", "BaggingTrainer"]:
            self.assertTrue(catalogue.has_component(identifier), identifier)
        self.assertFalse(catalogue.is_configurable("InMemoryDataSource", ComponentKind.DATA_SOURCE))


class TestComponentRegistry(unittest.TestCase):
    """Test ComponentRegistry."""

    def setUp(self):
        self.registry = ComponentRegistry(_catalogue())
        self.configs = [
            ComponentConfig("Source-0", "Source", {"path": "a.csv"}),
            ComponentConfig("Learner-1", "Learner", {"rate": 0.5}),
            ComponentConfig("Learner-2", "Learner", {"inner": ComponentRef("Learner-1")}),
        ]
        self.registry.register(self.configs)

    def test_lookup_is_lazy_and_cached(self):
        self.assertFalse(self.registry.is_instantiated("Source-0"))
        source = self.registry.lookup("Source-0")
        self.assertIsInstance(source, Source)
        self.assertIs(self.registry.lookup("Source-0"), source)
        self.assertTrue(self.registry.is_instantiated("Source-0"))

    def test_references_resolved(self):
        outer = self.registry.lookup("Learner-2")
        self.assertIs(outer.inner, self.registry.lookup("Learner-1"))
        self.assertEqual(outer.inner.rate, 0.5)

    def test_list_references_resolved(self):
        self.registry.register([
            ComponentConfig("Learner-3", "Learner", {"members": [ComponentRef("Learner-1"), ComponentRef("Learner-2")]}),
        ])
        learner = self.registry.lookup("Learner-3")
        self.assertEqual([member.rate for member in learner.members], [0.5, 0.1])

    def test_list_all(self):
        self.assertEqual(self.registry.list_all("Learner"), ["Learner-1", "Learner-2"])
        self.assertEqual(self.registry.list_all("Missing"), [])

    def test_override_before_instantiation(self):
        self.registry.override("Learner-1", "invocation_count", 3)
        self.assertEqual(self.registry.lookup("Learner-1").invocation_count, 3)
        # The caller's config is untouched
        self.assertNotIn("invocation_count", self.configs[1].properties)

    def test_override_after_instantiation_rejected(self):
        self.registry.lookup("Learner-1")
        with self.assertRaises(ReconstructionError):
            self.registry.override("Learner-1", "rate", 0.9)

    def test_unknown_name(self):
        with self.assertRaises(ReconstructionError):
            self.registry.lookup("Missing-9")
        with self.assertRaises(ReconstructionError):
            self.registry.override("Missing-9", "rate", 1)

    def test_duplicate_registration(self):
        with self.assertRaises(ReconstructionError):
            self.registry.register([ComponentConfig("Source-0", "Source", {})])

    def test_factory_errors_wrapped(self):
        self.registry.register([
            ComponentConfig("Source-5", "Source", {"path": "b.csv", "rows": -1}),
            ComponentConfig("Source-6", "Source", {"unknown": 1}),
            ComponentConfig("Thing-7", "Thing", {}),
        ])
        with self.assertRaises(ReconstructionError):
            self.registry.lookup("Source-5")
        with self.assertRaises(ReconstructionError):
            self.registry.lookup("Source-6")
        with self.assertRaises(ReconstructionError):
            self.registry.lookup("Thing-7")

    def test_circular_reference(self):
        registry = ComponentRegistry(_catalogue())
        registry.register([
            ComponentConfig("Learner-0", "Learner", {"inner": ComponentRef("Learner-1")}),
            ComponentConfig("Learner-1", "Learner", {"inner": ComponentRef("Learner-0")}),
        ])
        with self.assertRaises(ReconstructionError) as context:
            registry.lookup("Learner-0")
        self.assertIn("Circular", str(context.exception))

    def test_registries_are_independent(self):
        other = ComponentRegistry(self.registry.catalogue)
        other.register(self.configs)
        self.assertIsNot(other.lookup("Source-0"), self.registry.lookup("Source-0"))

    def test_container_protocol(self):
        self.assertIn("Source-0", self.registry)
        self.assertEqual(len(self.registry), 3)
        self.assertEqual(self.registry.names(), ["Source-0", "Learner-1", "Learner-2"])


if __name__ == "__main__":
    unittest.main()
