"""
Component Catalogue and Registry

The catalogue maps the stable identifiers recorded in provenance to factories
that can build the corresponding component. It is filled once, at import
time, by the ``register_component`` decorator.

A ComponentRegistry holds the configurations of one reproduction attempt and
lazily instantiates components from them. Registries are never shared: names
are only unique within the ordering they were extracted from.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from .errors import ReconstructionError
from .provenance.extraction import ComponentConfig, ComponentRef
from .utils.logging_utils import get_logger

logger = get_logger(__name__)


class ComponentKind(Enum):
    """Kinds of component the catalogue can build."""
    TRAINER = "trainer"
    DATA_SOURCE = "datasource"
    DATASET = "dataset"


@dataclass
class ComponentType:
    """
    Catalogue entry for one component type.

    Attributes:
        identifier: Stable name recorded as ``class-name`` in provenance
        factory: Callable building the component from keyword arguments
        kind: What sort of component the factory builds
        configurable: Whether the component can be rebuilt from its configuration alone
        metadata: Free-form description of the component
    """
    identifier: str
    factory: Callable[..., Any]
    kind: ComponentKind
    configurable: bool = True
    metadata: Dict[str, Any] = field(default_factory=dict)


class ComponentCatalogue:
    """
    Mapping from provenance class names to component factories.
    """

    def __init__(self):
        self._types: Dict[str, ComponentType] = {}

    def register(
        self,
        identifier: str,
        factory: Callable[..., Any],
        kind: ComponentKind,
        configurable: bool = True,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ComponentType:
        """
        Register a component type.

        Args:
            identifier: Name the component records as its class name
            factory: Callable building the component
            kind: Kind of component
            configurable: Whether it can be rebuilt from configuration
            metadata: Optional description (defaults to factory name, module and doc)

        Returns:
            The registered ComponentType

        Raises:
            ValueError: If the identifier is empty or already registered
        """
        if not identifier:
            raise ValueError("Component identifier cannot be empty")

        if self.has_component(identifier):
            raise ValueError(f"Component '{identifier}' is already registered")

        if not callable(factory):
            raise ValueError(f"Factory for component '{identifier}' is not callable")

        if metadata is None:
            metadata = {
                "factory": getattr(factory, "__name__", repr(factory)),
                "module": getattr(factory, "__module__", None),
                "doc": getattr(factory, "__doc__", None),
            }

        component_type = ComponentType(
            identifier=identifier,
            factory=factory,
            kind=kind,
            configurable=configurable,
            metadata=metadata,
        )
        self._types[identifier] = component_type

        logger.debug(f"Registered component: {identifier} ({kind.value})")
        return component_type

    def get(self, identifier: str) -> Optional[ComponentType]:
        return self._types.get(identifier)

    def resolve(self, identifier: str) -> ComponentType:
        """
        Look up a component type, failing if it is unknown.

        Raises:
            ReconstructionError: If no component is registered under ``identifier``
        """
        component_type = self._types.get(identifier)
        if component_type is None:
            available = ", ".join(sorted(self.list_components()))
            raise ReconstructionError(
                f"Component type '{identifier}' is not registered. Available types: {available}"
            )
        return component_type

    def has_component(self, identifier: str) -> bool:
        return identifier in self._types

    def list_components(self, kind: Optional[ComponentKind] = None) -> List[str]:
        """Registered identifiers, optionally restricted to one kind."""
        return [
            identifier
            for identifier, component_type in self._types.items()
            if kind is None or component_type.kind is kind
        ]

    def is_configurable(self, identifier: str, kind: ComponentKind) -> bool:
        """Whether ``identifier`` names a configurable component of the given kind."""
        component_type = self._types.get(identifier)
        return component_type is not None and component_type.kind is kind and component_type.configurable

    def wrap_dataset(self, identifier: str, source: Any) -> Any:
        """
        Build a dataset of type ``identifier`` around a data source.

        Raises:
            ReconstructionError: If the type is not a registered dataset or rejects the source
        """
        component_type = self.resolve(identifier)
        if component_type.kind is not ComponentKind.DATASET:
            raise ReconstructionError(f"Component '{identifier}' is a {component_type.kind.value}, not a dataset")
        try:
            return component_type.factory(source)
        except (TypeError, ValueError) as e:
            raise ReconstructionError(f"Could not build dataset '{identifier}': {e}") from e

    def __repr__(self) -> str:
        return f"ComponentCatalogue(components={list(self._types.keys())}, count={len(self._types)})"


# Catalogue filled by the component modules on import
catalogue = ComponentCatalogue()


def register_component(
    identifier: str,
    kind: ComponentKind,
    configurable: bool = True,
    metadata: Optional[Dict[str, Any]] = None,
) -> Callable:
    """
    Decorator registering a component class in the global catalogue.

    Usage:
        @register_component("CSVDataSource", ComponentKind.DATA_SOURCE)
        class CSVDataSource(DataSource):
            ...

    The identifier is also stored on the class as ``component_id`` so that
    instances record it as their provenance class name.
    """
    def decorator(cls):
        catalogue.register(identifier, cls, kind, configurable=configurable, metadata=metadata)
        cls.component_id = identifier
        return cls
    return decorator


class ComponentRegistry:
    """
    Configurations and live components of a single reproduction attempt.
    """

    def __init__(self, component_catalogue: Optional[ComponentCatalogue] = None):
        self.catalogue = component_catalogue if component_catalogue is not None else catalogue
        self._configs: Dict[str, ComponentConfig] = {}
        self._instances: Dict[str, Any] = {}
        self._resolving: List[str] = []

    def register(self, configs: Iterable[ComponentConfig]) -> None:
        """
        Add configurations to the registry.

        Configurations are copied, so later overrides never touch the caller's objects.

        Raises:
            ReconstructionError: If a component name is already registered
        """
        for config in configs:
            if config.name in self._configs:
                raise ReconstructionError(f"Component '{config.name}' is already registered")
            self._configs[config.name] = copy.deepcopy(config)
            logger.debug(f"Registered configuration {config.name} ({config.class_name})")

    def override(self, name: str, key: str, value: Any) -> None:
        """
        Change one property of a component before it is instantiated.

        Raises:
            ReconstructionError: If the component is unknown or already instantiated
        """
        config = self.get_config(name)
        if self.is_instantiated(name):
            raise ReconstructionError(f"Component '{name}' is already instantiated; cannot override '{key}'")
        config.properties[key] = value

    def get_config(self, name: str) -> ComponentConfig:
        try:
            return self._configs[name]
        except KeyError:
            raise ReconstructionError(f"No component named '{name}'") from None

    def lookup(self, name: str) -> Any:
        """
        Return the component called ``name``, instantiating it on first use.

        Referenced components are looked up first. Instances are cached for
        the lifetime of this registry.

        Raises:
            ReconstructionError: If the component cannot be built
        """
        if self.is_instantiated(name):
            return self._instances[name]

        config = self.get_config(name)
        if name in self._resolving:
            chain = " -> ".join(self._resolving + [name])
            raise ReconstructionError(f"Circular component reference: {chain}")

        component_type = self.catalogue.resolve(config.class_name)

        self._resolving.append(name)
        try:
            kwargs = {key: self._resolve_value(value) for key, value in config.properties.items()}
            try:
                instance = component_type.factory(**kwargs)
            except (TypeError, ValueError) as e:
                raise ReconstructionError(
                    f"Could not instantiate '{name}' ({config.class_name}): {e}"
                ) from e
        finally:
            self._resolving.pop()

        self._instances[name] = instance
        logger.debug(f"Instantiated component {name}")
        return instance

    def _resolve_value(self, value: Any) -> Any:
        if isinstance(value, ComponentRef):
            return self.lookup(value.name)
        if isinstance(value, list):
            return [self._resolve_value(item) for item in value]
        return value

    def list_all(self, identifier: str) -> List[str]:
        """Names of the registered components of type ``identifier``, in registration order."""
        return [name for name, config in self._configs.items() if config.class_name == identifier]

    def names(self) -> List[str]:
        return list(self._configs)

    def is_instantiated(self, name: str) -> bool:
        return name in self._instances

    def __contains__(self, name: str) -> bool:
        return name in self._configs

    def __len__(self) -> int:
        return len(self._configs)

    def __repr__(self) -> str:
        return f"ComponentRegistry(components={self.names()}, instantiated={list(self._instances)})"
