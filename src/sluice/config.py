"""Application configuration."""
import json
import os


class Config(dict):
    """A dict subclass holding the application settings.

    Supports loading from mappings, Python objects, Python files and
    environment variables. Keys are uppercase strings by convention.
    """

    def __init__(self, root_path=None, defaults=None):
        self.root_path = os.fspath(root_path) if root_path else os.getcwd()
        super().__init__(defaults or {})

    def from_mapping(self, mapping=None, **kwargs):
        """Update config from a mapping or keyword arguments."""
        if mapping is not None:
            if hasattr(mapping, "items"):
                mapping = mapping.items()
            for key, value in mapping:
                self[key] = value
        for key, value in kwargs.items():
            self[key] = value
        return True

    def from_object(self, obj):
        """Update config from the UPPERCASE attributes of *obj*.

        *obj* can be a module, a class, any object, or an import string.
        """
        if isinstance(obj, str):
            from werkzeug.utils import import_string
            obj = import_string(obj)
        for key in dir(obj):
            if key.isupper():
                self[key] = getattr(obj, key)
        return True

    def from_pyfile(self, filename, silent=False):
        """Update config from the UPPERCASE globals of a Python file.

        Relative paths are resolved against ``root_path``. Returns False
        when *silent* is set and the file does not exist.
        """
        filename = os.fspath(filename)
        if not os.path.isabs(filename):
            filename = os.path.join(self.root_path, filename)
        d = {"__file__": filename, "__name__": "__config__"}
        try:
            with open(filename, "rb") as f:
                exec(compile(f.read(), filename, "exec"), d)  # noqa: S102
        except FileNotFoundError:
            if silent:
                return False
            raise OSError(
                f"Unable to load configuration file (No such file or"
                f" directory): {filename!r}"
            )
        return self.from_object(_Namespace(d))

    def from_envvar(self, variable_name, silent=False):
        """Load a Python config file named by an environment variable."""
        rv = os.environ.get(variable_name)
        if not rv:
            if silent:
                return False
            raise RuntimeError(
                f"The environment variable {variable_name!r} is not set and"
                " as such configuration could not be loaded. Set this"
                " variable and make it point to a configuration file."
            )
        return self.from_pyfile(rv, silent=silent)

    def from_prefixed_env(self, prefix="SLUICE", loads=json.loads):
        """Update config from environment variables starting with *prefix*.

        ``SLUICE_BASE_PATH=/app`` sets ``config["BASE_PATH"]``. Values are
        passed through *loads*; the raw string is kept if that fails.
        """
        prefix = prefix + "_"
        for key in sorted(os.environ):
            if not key.startswith(prefix):
                continue
            value = os.environ[key]
            try:
                value = loads(value)
            except ValueError:
                pass
            self[key[len(prefix):]] = value
        return True

    def get_namespace(self, namespace, lowercase=True, trim_namespace=True):
        """Return the keys starting with *namespace* as a new dict.

        ``get_namespace("SESSION_COOKIE_")`` yields ``{"path": ...,
        "domain": ..., ...}``.
        """
        result = {}
        for key, value in self.items():
            if not key.startswith(namespace):
                continue
            if trim_namespace:
                key = key[len(namespace):]
            if lowercase:
                key = key.lower()
            result[key] = value
        return result

    def __repr__(self):
        return f"<Config {dict.__repr__(self)}>"


class _Namespace:
    def __init__(self, values):
        self.__dict__.update(values)
