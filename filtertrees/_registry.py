from typing import Any, Callable, Dict, List, TypeVar

T = TypeVar("T")


class Registry:
    """Register callables by alias so they can be looked up by name.

    Parameters
    ----------
    name : str
        Name of registry.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._registry: Dict[str, Any] = dict()

    @property
    def name(self) -> str:
        """Get registry name.

        Returns
        -------
        str
            Name of registry.
        """
        return self._name

    def keys(self) -> List[str]:
        """Return aliases in registry.

        Returns
        -------
        List[str]
            List of aliases.
        """
        return list(self._registry.keys())

    def __contains__(self, key: object) -> bool:
        """Check if alias is in registry.

        Parameters
        ----------
        key : object
            Alias to look up.

        Returns
        -------
        bool
            True if alias is registered, False otherwise.
        """
        return key in self._registry

    def __getitem__(self, key: str) -> Any:
        """Get callable in registry.

        Parameters
        ----------
        key : str
            Alias in registry.

        Returns
        -------
        Any
            Registered callable.
        """
        entry = self._registry.get(key, None)
        if not entry:
            raise KeyError(f"({key}) not found in registry ({self._name})")

        return entry

    def register(self, alias: str) -> Callable[[T], T]:
        """Register callable.

        Parameters
        ----------
        alias : str
            Alias for callable.

        Returns
        -------
        Callable
            Decorator that registers and returns the callable unchanged.
        """

        def wrapper(f: T) -> T:
            # Alias must be unique
            if alias in self._registry:
                raise KeyError(f"alias ({alias}) already exists in registry ({self._name})")

            self._registry[alias] = f
            return f

        return wrapper


Kernels = Registry("Kernels")
