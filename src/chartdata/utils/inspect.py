"""Provide insights about Python objects."""

import inspect
from typing import Any


def get_qualname(obj: Any) -> str:
    """Get the qualified name of the given object.

    Used to describe the callables attached to computed
    columns, which can't be shown through their value.

    For functions or methods, this will return
    something like `module.class.method` or
    `module.function`.

    >>> class Calc:
    ...   def total(self, data, row):
    ...     pass
    >>> get_qualname(Calc.total)
    'chartdata.utils.inspect.Calc.total'
    >>> get_qualname(len)
    'builtins.len'
    """
    module = inspect.getmodule(obj)
    module_name = module.__name__ if module is not None else "builtins"
    if inspect.ismethod(obj) or inspect.isfunction(obj) or inspect.isbuiltin(obj):
        if inspect.ismethod(obj):
            class_name = obj.__self__.__class__.__name__
            return f"{module_name}.{class_name}.{obj.__name__}"
        return f"{module_name}.{obj.__qualname__}"
    elif inspect.isclass(obj):
        return f"{module_name}.{obj.__name__}"
    elif isinstance(obj, object):
        return f"{module_name}.{obj.__class__.__name__}"
    raise ValueError(f"Unable to detect path for object of type {type(obj)}")
