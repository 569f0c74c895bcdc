"""Typed view of ``swift package dump-package`` output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Tuple


def _first_key(value: Any) -> str:
    # dump-package encodes enums as {"case": [...]} objects.
    if isinstance(value, Mapping) and value:
        return str(next(iter(value)))
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class Platform:
    name: str
    version: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Platform":
        return cls(
            name=str(data.get("platformName") or data.get("name") or ""),
            version=str(data.get("version") or ""),
        )


@dataclass(frozen=True)
class Product:
    name: str
    type: str
    targets: Tuple[str, ...]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Product":
        return cls(
            name=str(data.get("name", "")),
            type=_first_key(data.get("type")),
            targets=tuple(str(t) for t in data.get("targets") or ()),
        )


@dataclass(frozen=True)
class Dependency:
    name: str
    url: str
    requirement: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Dependency":
        # Newer toolchains nest everything under the dependency kind.
        body: Mapping[str, Any] = data
        for kind in ("sourceControl", "fileSystem", "registry"):
            nested = data.get(kind)
            if isinstance(nested, list) and nested and isinstance(nested[0], Mapping):
                body = nested[0]
                break

        url = body.get("url") or ""
        location = body.get("location")
        if not url and isinstance(location, Mapping):
            remote = location.get("remote")
            if isinstance(remote, list) and remote:
                entry = remote[0]
                url = entry.get("urlString", "") if isinstance(entry, Mapping) else entry
        elif not url and isinstance(body.get("path"), str):
            url = body["path"]

        name = body.get("name") or body.get("nameForTargetDependencyResolutionOnly") or body.get("identity") or ""
        requirement = body.get("version") or _first_key(body.get("requirement"))
        return cls(name=str(name), url=str(url or ""), requirement=str(requirement or ""))


@dataclass(frozen=True)
class Target:
    name: str
    type: str
    dependencies: Tuple[str, ...]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Target":
        deps: list[str] = []
        for dep in data.get("dependencies") or ():
            if isinstance(dep, str):
                deps.append(dep)
                continue
            if isinstance(dep, Mapping):
                for value in dep.values():
                    if isinstance(value, list) and value and value[0] is not None:
                        deps.append(str(value[0]))
                        break
        return cls(
            name=str(data.get("name", "")),
            type=str(data.get("type") or ""),
            dependencies=tuple(deps),
        )


@dataclass(frozen=True)
class PackageManifest:
    name: str
    platforms: Tuple[Platform, ...] = ()
    products: Tuple[Product, ...] = ()
    dependencies: Tuple[Dependency, ...] = ()
    targets: Tuple[Target, ...] = ()
    tools_version: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PackageManifest":
        tools = data.get("toolsVersion") or data.get("swift_tools_version") or ""
        if isinstance(tools, Mapping):
            tools = tools.get("_version", "")

        def items(key: str) -> list[Mapping[str, Any]]:
            return [item for item in data.get(key) or () if isinstance(item, Mapping)]

        return cls(
            name=str(data.get("name", "")),
            platforms=tuple(Platform.from_dict(p) for p in items("platforms")),
            products=tuple(Product.from_dict(p) for p in items("products")),
            dependencies=tuple(Dependency.from_dict(d) for d in items("dependencies")),
            targets=tuple(Target.from_dict(t) for t in items("targets")),
            tools_version=str(tools),
        )
