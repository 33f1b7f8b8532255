"""Manifest format strategies and their registry."""

import logging
from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ManifestDecodeError, StrategyNotFoundError
from .models import Package, PackageSet

logger = logging.getLogger(__name__)


class NpmManifest(BaseModel):
    """Dependency fields of a package.json file."""

    model_config = ConfigDict(extra="ignore")

    dependencies: Optional[Dict[str, str]] = None
    dev_dependencies: Optional[Dict[str, str]] = Field(None, alias="devDependencies")


class ComposerManifest(BaseModel):
    """Dependency fields of a composer.json file."""

    model_config = ConfigDict(extra="ignore")

    require: Optional[Dict[str, str]] = None
    require_dev: Optional[Dict[str, str]] = Field(None, alias="require-dev")


class Strategy(ABC):
    """Stateless parser for one manifest file format."""

    name: str = ""
    match_files: Tuple[str, ...] = ()
    manifest_model: Type[BaseModel]

    def matches(self, file_name: str) -> bool:
        """Return True if this strategy handles files named ``file_name``."""
        return file_name in self.match_files

    def parse(self, content: bytes) -> PackageSet:
        """Parse raw manifest bytes into a package set, dev entries included."""
        try:
            manifest = self.manifest_model.model_validate_json(content)
        except ValidationError as e:
            errors = [
                {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
                for err in e.errors()
            ]
            reason = errors[0]["msg"] if errors else str(e)
            raise ManifestDecodeError(self.name, reason, errors) from e

        packages: PackageSet = {}
        for versions, is_dev in self._dependency_groups(manifest):
            # later groups overwrite earlier ones, so dev wins on duplicates
            for name, version in (versions or {}).items():
                packages[name] = Package(name=name, version=version, is_dev=is_dev)
        return packages

    def get_packages(self, content: bytes, capture_dev: bool) -> PackageSet:
        """Parse content and drop dev packages unless ``capture_dev`` is set."""
        packages = self.parse(content)
        if not capture_dev:
            packages = {name: pkg for name, pkg in packages.items() if not pkg.is_dev}
        return packages

    @abstractmethod
    def _dependency_groups(
        self, manifest: BaseModel
    ) -> List[Tuple[Optional[Dict[str, str]], bool]]:
        """Return (name -> version map, is_dev) pairs in overwrite order."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class NpmStrategy(Strategy):
    """npm package.json: ``dependencies`` and ``devDependencies``."""

    name = "npm"
    match_files = ("package.json",)
    manifest_model = NpmManifest

    def _dependency_groups(self, manifest):
        return [(manifest.dependencies, False), (manifest.dev_dependencies, True)]


class ComposerStrategy(Strategy):
    """Composer composer.json: ``require`` and ``require-dev``."""

    name = "composer"
    match_files = ("composer.json",)
    manifest_model = ComposerManifest

    def _dependency_groups(self, manifest):
        return [(manifest.require, False), (manifest.require_dev, True)]


class StrategyRegistry:
    """Immutable, ordered set of strategies available to a run."""

    def __init__(self, strategies: Iterable[Strategy]):
        self._strategies: Tuple[Strategy, ...] = tuple(strategies)

    @classmethod
    def default(cls) -> "StrategyRegistry":
        """Registry with the built-in strategies in lookup order."""
        return cls([ComposerStrategy(), NpmStrategy()])

    @property
    def strategies(self) -> Tuple[Strategy, ...]:
        return self._strategies

    def names(self) -> List[str]:
        return [strategy.name for strategy in self._strategies]

    def find_by_name(self, name: str) -> Strategy:
        """Return the strategy whose name equals ``name`` exactly."""
        for strategy in self._strategies:
            if strategy.name == name:
                return strategy
        raise StrategyNotFoundError("name", name, self.names())

    def find_by_path(self, path: str) -> Strategy:
        """Return the first strategy declaring the base name of ``path``."""
        target = PurePosixPath(path.replace("\\", "/")).name
        for strategy in self._strategies:
            if strategy.matches(target):
                return strategy
        raise StrategyNotFoundError("path", path, self.names())

    def resolve(self, name: Optional[str], path: str) -> Strategy:
        """Pick a strategy by explicit name, falling back to the file name."""
        strategy = self.find_by_name(name) if name else self.find_by_path(path)
        logger.debug(
            "Strategy resolved",
            extra={"strategy": strategy.name, "requested": name, "path": path},
        )
        return strategy
