from pathlib import Path
from typing import Iterable, Optional, Sequence

import pytest


MANIFEST_TEMPLATE = """{
    "format_version": 2,
    "header": {
        "description": "Pack de teste",
        "name": "%(name)s",
        "uuid": "%(uuid)s",
        "version": [%(version)s],
        "min_engine_version": [1, 20, 0]
    },
    "modules": [
        {
            "type": "resources",
            "uuid": "%(uuid)s-module",
            "version": [%(version)s]
        }
    ]
}
"""


def _version_list(version: Sequence[int]) -> str:
    return ", ".join(str(v) for v in version)


@pytest.fixture()
def make_pack():
    """Cria uma pasta de pack com manifest.json e materiais opcionais."""

    def _make(
        pack_dir: Path,
        uuid: str,
        name: str = "Pack",
        version: Sequence[int] = (1, 0, 0),
        materials: Iterable[str] = (),
        subpacks: Optional[dict] = None,
    ) -> Path:
        pack_dir.mkdir(parents=True, exist_ok=True)
        (pack_dir / "manifest.json").write_text(
            MANIFEST_TEMPLATE % {"name": name, "uuid": uuid, "version": _version_list(version)},
            encoding="utf-8",
        )
        materials = list(materials)
        if materials:
            mat_dir = pack_dir / "renderer" / "materials"
            mat_dir.mkdir(parents=True, exist_ok=True)
            for m in materials:
                (mat_dir / m).write_bytes(b"main:" + m.encode())
        for sub_name, sub_materials in (subpacks or {}).items():
            sub_dir = pack_dir / "subpacks" / sub_name / "renderer" / "materials"
            sub_dir.mkdir(parents=True, exist_ok=True)
            for m in sub_materials:
                (sub_dir / m).write_bytes(b"sub:" + m.encode())
        return pack_dir

    return _make


@pytest.fixture()
def launcher(tmp_path):
    """Raiz do mcpelauncher com a estrutura mínima (sem registro)."""
    root = tmp_path / "mcpelauncher"
    data = root / "games" / "com.mojang"
    (data / "resource_packs").mkdir(parents=True)
    (data / "development_resource_packs").mkdir(parents=True)
    (data / "minecraftpe").mkdir(parents=True)
    (root / "shaders").mkdir(parents=True)
    return root


@pytest.fixture()
def write_registry():
    """Escreve global_resource_packs.json no formato gerado pelo jogo."""

    def _write(root: Path, pack_id: str, version: Sequence[int] = (1, 0, 0), subpack: Optional[str] = None) -> Path:
        lines = ["[", "   {", f'      "pack_id" : "{pack_id}",']
        if subpack is not None:
            lines.append(f'      "subpack" : "{subpack}",')
        lines.append(f"      \"version\" : [ {_version_list(version)} ]")
        lines += ["   }", "]", ""]
        path = root / "games" / "com.mojang" / "minecraftpe" / "global_resource_packs.json"
        path.write_text("\n".join(lines), encoding="utf-8")
        return path

    return _write
