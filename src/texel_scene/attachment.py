"""
Component attachment for entity/component frameworks.

A pure association from (component type, entity id) to a value. The
registry never creates, owns or destroys entities; detaching a component
only forgets the association.
"""

from typing import Hashable, Iterator, Optional, TypeVar

T = TypeVar("T")


class ComponentRegistry:
    """
    Maps (component type, entity) to a single component value.

    Each entity holds at most one component per type, and a component
    object is attached to at most one entity at a time.

    Example:
        >>> registry = ComponentRegistry()
        >>> registry.attach(42, scene)
        >>> registry.get(42, SceneV3) is scene
        True
    """

    def __init__(self) -> None:
        self._components: dict[tuple[type, Hashable], object] = {}
        self._owners: dict[int, Hashable] = {}

    def attach(self, entity: Hashable, component: object) -> Optional[object]:
        """
        Attach `component` to `entity`, keyed by its type.

        Returns:
            The component of the same type previously attached to `entity`

        Raises:
            ValueError: If `component` is already attached to another entity
        """
        owner = self._owners.get(id(component))
        if owner is not None and owner != entity:
            raise ValueError(f"Component already attached to entity {owner!r}")

        key = (type(component), entity)
        previous = self._components.get(key)
        if previous is not None and previous is not component:
            del self._owners[id(previous)]

        self._components[key] = component
        self._owners[id(component)] = entity
        return previous

    def get(self, entity: Hashable, component_type: type[T]) -> Optional[T]:
        """Return the component of `component_type` attached to `entity`."""
        return self._components.get((component_type, entity))

    def require(self, entity: Hashable, component_type: type[T]) -> T:
        """Like `get`, but raises KeyError when nothing is attached."""
        component = self.get(entity, component_type)
        if component is None:
            raise KeyError(f"No {component_type.__name__} attached to entity {entity!r}")
        return component

    def detach(self, entity: Hashable, component_type: type[T]) -> Optional[T]:
        """Remove and return the component of `component_type` on `entity`."""
        component = self._components.pop((component_type, entity), None)
        if component is not None:
            del self._owners[id(component)]
        return component

    def entity_of(self, component: object) -> Optional[Hashable]:
        """Return the entity `component` is attached to, if any."""
        return self._owners.get(id(component))

    def entities_with(self, component_type: type) -> list[Hashable]:
        """Entities holding a component of `component_type`, in attach order."""
        return [entity for (ctype, entity) in self._components if ctype is component_type]

    def components_of(self, entity: Hashable) -> list[object]:
        """Every component attached to `entity`."""
        return [c for (_, e), c in self._components.items() if e == entity]

    def __contains__(self, key: tuple[Hashable, type]) -> bool:
        entity, component_type = key
        return (component_type, entity) in self._components

    def __len__(self) -> int:
        return len(self._components)

    def __iter__(self) -> Iterator[tuple[type, Hashable]]:
        return iter(self._components)
