"""
Named theme snapshots used to seed and reset color variables.
"""

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from theme_color_engine.core import CONFIG
from theme_color_engine.generation.stylesheet import parse_stylesheet
from theme_color_engine.utils.logger import get_logger

logger = get_logger(__name__)

ROOT_THEME = "root"
LIGHT_VIEW = "view-light"
DARK_VIEW = "view-dark"
VIEWS = (ROOT_THEME, LIGHT_VIEW, DARK_VIEW)


class ThemeError(Exception):
    """Raised for unknown themes in strict lookups."""
    pass


def view_name(dark: bool) -> str:
    return DARK_VIEW if dark else LIGHT_VIEW


class ThemeStore:
    """
    Theme name -> {variable name: raw CSS value}.

    The views ``root``, ``view-light`` and ``view-dark`` define base values;
    other themes (``theme-*``) are applied on top of a view.
    """

    def __init__(self):
        self._themes: "OrderedDict[str, Dict[str, str]]" = OrderedDict()

    def add_theme(self, name: str, values: Dict[str, str], merge: bool = False) -> None:
        """
        Store a theme.

        Args:
            name: Theme name, e.g. "view-dark" or "theme-ocean"
            values: Variable name -> raw value
            merge: Update an existing theme instead of replacing it
        """
        if merge and name in self._themes:
            self._themes[name].update(values)
        else:
            self._themes[name] = dict(values)
        logger.debug(f"Theme {name} has {len(self._themes[name])} values")

    def get(self, name: str, strict: bool = False) -> Optional[Dict[str, str]]:
        """
        Values of a theme.

        Raises:
            ThemeError: If strict and the theme is unknown
        """
        theme = self._themes.get(name)
        if theme is None and strict:
            raise ThemeError(f"No theme with name {name!r}")
        return theme

    def __getitem__(self, name: str) -> Dict[str, str]:
        return self.get(name, strict=True)

    def __contains__(self, name: object) -> bool:
        return name in self._themes

    def __len__(self) -> int:
        return len(self._themes)

    @property
    def names(self) -> List[str]:
        return list(self._themes)

    def has_rgb_variant(self, name: str, variable_names: Iterable[str] = ()) -> bool:
        """
        Whether the root theme declares an ``r,g,b`` companion of a variable.

        A companion that is itself a known variable does not count.
        """
        companion = name + CONFIG["rgb_suffix"]
        root = self._themes.get(ROOT_THEME) or {}
        return companion in root and companion not in set(variable_names)

    def fill_views_from_root(self) -> None:
        """Copy root values into the views where they are missing."""
        root = self._themes.get(ROOT_THEME)
        if not root:
            return
        for view in (LIGHT_VIEW, DARK_VIEW):
            theme = self._themes.get(view)
            if theme is None:
                continue
            for key, value in root.items():
                theme.setdefault(key, value)

    @classmethod
    def from_css(cls, text: str, variable_names: Optional[Iterable[str]] = None) -> 'ThemeStore':
        """
        Collect themes from stylesheet text.

        ``:root`` and ``html`` rules form the root theme, ``.view-light``,
        ``.view-dark`` and ``.theme-*`` rules the views and named themes.
        Only custom properties are kept, limited to the given variable names
        and their ``--rgb`` companions when names are passed.

        Args:
            text: Stylesheet text
            variable_names: Optional names to keep

        Returns:
            Populated store
        """
        store = cls()
        known = set(variable_names) if variable_names is not None else None
        suffix = CONFIG["rgb_suffix"]

        for selector, declarations in parse_stylesheet(text).items():
            if selector in (":root", "html"):
                name = ROOT_THEME
            elif selector in (".view-light", ".view-dark") or selector.startswith(".theme-"):
                name = selector[1:]
            else:
                continue

            values = {}
            for key, value in declarations.items():
                if not key.startswith("--"):
                    continue
                base_key = key[:-len(suffix)] if key.endswith(suffix) else None
                if known is None or key in known or (base_key and base_key in known):
                    values[key] = value
            store.add_theme(name, values, merge=True)

        store.fill_views_from_root()
        logger.info(f"Parsed {len(store)} themes: {', '.join(store.names)}")
        return store


__all__ = [
    "ThemeError", "ThemeStore", "ROOT_THEME", "LIGHT_VIEW", "DARK_VIEW", "VIEWS", "view_name",
]
