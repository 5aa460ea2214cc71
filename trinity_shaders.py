#!/usr/bin/env python3
"""trinity_shaders.py

Publica os shaders do resource pack ativo do mcpelauncher (Trinity Launcher).

Conceitos:
- Pack     = pasta com manifest.json em resource_packs/ ou development_resource_packs/
             (diretamente ou dentro de uma pasta de namespace, 1 nível abaixo).
- Ativo    = primeiro pack registrado em minecraftpe/global_resource_packs.json.
- Shaders  = arquivos *.material.bin em <pack>/renderer/materials
             (e <pack>/subpacks/<subpack>/renderer/materials, que têm prioridade).

Funcionamento:
- Escaneia os packs instalados e identifica o pack ativo (uuid + versão).
- Esvazia <launcher>/shaders e cria symlinks para os materiais do pack ativo.
- Sem pack ativo ou sem materiais: a pasta shaders fica vazia.

Os manifests são lidos linha a linha (tolerante), sem parser JSON.

Dependências:
- rich (interface colorida)
- InquirerPy (menus interativos, apenas com --interactive)

Requisitos: Python 3.9+
"""

from __future__ import annotations

import argparse
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text


# -------------------------
# Configuração
# -------------------------

KNOWN_ROOTS = (
    Path(".local/share/mcpelauncher"),
    Path(".var/app/com.trench.trinity.launcher/data/mcpelauncher"),
)

DATA_SUBDIR = Path("games/com.mojang")
REGISTRY_SUBPATH = Path("minecraftpe/global_resource_packs.json")
RESOURCE_PACKS_DIR = "resource_packs"
DEV_RESOURCE_PACKS_DIR = "development_resource_packs"
SHADERS_DIR = "shaders"

MANIFEST_NAME = "manifest.json"
MATERIAL_SUFFIX = ".material.bin"
FORMAT_MARKER = "§"
MAX_PACKS = 100


# -------------------------
# Rich Console
# -------------------------

console = Console()


def info(msg: str) -> None:
    console.print(f"[cyan][ℹ][/cyan] {msg}")


def ok(msg: str) -> None:
    console.print(f"[bold green][✓][/bold green] {msg}")


def warn(msg: str) -> None:
    console.print(f"[bold yellow][⚠][/bold yellow] {msg}")


def err(msg: str) -> None:
    console.print(f"[bold red][✗][/bold red] {msg}")


def title(msg: str) -> None:
    console.print()
    console.print(Panel(
        Text(msg, style="bold magenta", justify="center"),
        box=box.DOUBLE,
        border_style="bright_blue",
        padding=(0, 2)
    ))
    console.print()


def goodbye_msg() -> None:
    """Mensagem de saída quando usuário cancela com Ctrl+C."""
    console.print()
    console.print(Panel(
        Text("👋 Até logo! Operação cancelada pelo usuário.", style="bold cyan", justify="center"),
        box=box.ROUNDED,
        border_style="dim",
        padding=(0, 2)
    ))
    console.print()


def tui():
    from InquirerPy import inquirer  # type: ignore
    from InquirerPy.base import Choice  # type: ignore
    from InquirerPy.validator import PathValidator  # type: ignore

    return inquirer, Choice, PathValidator


# -------------------------
# Erros
# -------------------------

class RegistryError(RuntimeError):
    """global_resource_packs.json ausente ou ilegível."""


class LauncherNotFoundError(RuntimeError):
    """Nenhuma instalação do mcpelauncher encontrada."""


class ShadersDirError(RuntimeError):
    """Pasta shaders ausente."""


# -------------------------
# Leitura tolerante de manifest/registro
# -------------------------

_DIGIT_RUN = re.compile(r"[0-9]+")


def _read_lines(path: Path) -> Optional[List[str]]:
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return f.readlines()
    except OSError:
        return None


def extract_quoted_string(path: Path, key: str) -> Optional[str]:
    """Retorna o valor de `"key": "valor"` na primeira linha que o contém.

    A busca é textual: a primeira linha com a chave (entre aspas) e um valor
    entre aspas depois do ':' vence. Linhas com a chave mas sem valor na
    mesma linha são ignoradas. Arquivo ilegível = None.
    """
    lines = _read_lines(path)
    if lines is None:
        return None

    token = f'"{key}"'
    for line in lines:
        pos = line.find(token)
        if pos < 0:
            continue
        colon = line.find(":", pos + len(token))
        if colon < 0:
            continue
        start = line.find('"', colon + 1)
        if start < 0:
            continue
        end = line.find('"', start + 1)
        if end < 0:
            continue
        return line[start + 1:end]
    return None


def extract_version_triple(path: Path, key: str = "version") -> Optional[str]:
    """Retorna a versão `"key": [1, 12, 3]` achatada em dígitos ("1123").

    Cada sequência de dígitos dentro dos colchetes é um componente; apenas os
    3 primeiros são usados. Qualquer outro caractere é descartado.
    """
    lines = _read_lines(path)
    if lines is None:
        return None

    token = f'"{key}"'
    for line in lines:
        pos = line.find(token)
        if pos < 0:
            continue
        start = line.find("[", pos + len(token))
        if start < 0:
            continue
        end = line.find("]", start + 1)
        if end < 0:
            continue
        return "".join(_DIGIT_RUN.findall(line[start + 1:end])[:3])
    return None


def clean_name(name: str) -> str:
    """Remove os códigos de formatação do Minecraft (§ + 1 caractere)."""
    out: List[str] = []
    chars = iter(name)
    for ch in chars:
        if ch == FORMAT_MARKER:
            next(chars, None)
            continue
        out.append(ch)
    return "".join(out)


# -------------------------
# Catálogo de packs
# -------------------------

@dataclass(frozen=True)
class PackRecord:
    uuid: str               # header.uuid
    version: str            # header.version só com dígitos ([1, 2, 3] -> "123")
    name: str               # header.name sem códigos §
    path: Path              # pasta raiz do pack (absoluta)
    is_development: bool = False


class PackCatalog:
    """Packs descobertos, na ordem de descoberta, com limite de tamanho."""

    def __init__(self, max_size: int = MAX_PACKS) -> None:
        self.max_size = max_size
        self._packs: List[PackRecord] = []

    @property
    def is_full(self) -> bool:
        return len(self._packs) >= self.max_size

    def add(self, pack: PackRecord) -> bool:
        if self.is_full:
            return False
        self._packs.append(pack)
        return True

    def __len__(self) -> int:
        return len(self._packs)

    def __iter__(self) -> Iterator[PackRecord]:
        return iter(self._packs)

    def __getitem__(self, index: int) -> PackRecord:
        return self._packs[index]


def read_pack_manifest(pack_dir: Path, is_development: bool = False) -> Optional[PackRecord]:
    """Lê uuid, nome e versão do manifest.json. None se algum faltar."""
    manifest = pack_dir / MANIFEST_NAME
    uuid = extract_quoted_string(manifest, "uuid")
    name = extract_quoted_string(manifest, "name")
    version = extract_version_triple(manifest)

    if not uuid or name is None or not version:
        return None

    return PackRecord(
        uuid=uuid,
        version=version,
        name=clean_name(name),
        path=Path(os.path.abspath(pack_dir)),
        is_development=is_development,
    )


def _list_subdirs(folder: Path) -> List[Path]:
    return sorted(p for p in folder.iterdir() if not p.name.startswith(".") and p.is_dir())


def _has_manifest(folder: Path) -> bool:
    return (folder / MANIFEST_NAME).exists()


def scan_pack_root(root: Path, is_development: bool, catalog: PackCatalog) -> int:
    """Escaneia uma raiz de packs e adiciona os packs válidos ao catálogo.

    Cada subpasta com manifest.json é um pack; sem manifest, ela é tratada
    como namespace e suas subpastas (1 nível) são verificadas. Retorna a
    quantidade de packs adicionados.
    """
    try:
        children = _list_subdirs(root)
    except OSError:
        return 0

    added = 0
    for child in children:
        if _has_manifest(child):
            candidates = [child]
        else:
            try:
                candidates = [sub for sub in _list_subdirs(child) if _has_manifest(sub)]
            except OSError as e:
                warn(f"Não foi possível ler {escape(str(child))}: {escape(str(e))}")
                continue

        for pack_dir in candidates:
            if catalog.is_full:
                warn("Packs demais, ignorando o restante...")
                return added

            pack = read_pack_manifest(pack_dir, is_development)
            if pack is None:
                warn(f"Ignorando: {escape(str(pack_dir / MANIFEST_NAME))} (UUID ausente ou inválido)")
                continue

            catalog.add(pack)
            added += 1
            suffix = " [DEVELOPMENT]" if is_development else ""
            console.print(f"{len(catalog)}.\t{escape(pack.name)}{suffix}")
    return added


def build_catalog(data_dir: Path, max_packs: int = MAX_PACKS) -> PackCatalog:
    catalog = PackCatalog(max_packs)
    scan_pack_root(data_dir / RESOURCE_PACKS_DIR, False, catalog)
    scan_pack_root(data_dir / DEV_RESOURCE_PACKS_DIR, True, catalog)
    return catalog


# -------------------------
# Pack ativo
# -------------------------

@dataclass(frozen=True)
class ActiveSelector:
    pack_id: str
    version: str            # só dígitos, até 3 componentes
    subpack: str = ""


def load_active_selector(registry_path: Path) -> ActiveSelector:
    if not registry_path.is_file():
        raise RegistryError(f"{registry_path.name} não encontrado.")

    pack_id = extract_quoted_string(registry_path, "pack_id")
    version = extract_version_triple(registry_path)
    if pack_id is None or version is None:
        raise RegistryError(f"Falha ao interpretar {registry_path.name}")

    subpack = extract_quoted_string(registry_path, "subpack") or ""
    return ActiveSelector(pack_id=pack_id, version=version, subpack=subpack)


def pack_key(pack_id: str, version: str) -> str:
    return f"{pack_id.lower()}_{version.lower()}"


def resolve_active_pack(catalog: Iterable[PackRecord], selector: ActiveSelector) -> Optional[PackRecord]:
    """Primeiro pack do catálogo cuja chave uuid_versão bate com o registro."""
    wanted = pack_key(selector.pack_id, selector.version)
    for pack in catalog:
        if pack_key(pack.uuid, pack.version) == wanted:
            return pack
    return None


# -------------------------
# Symlinks
# -------------------------

def materials_dir(pack_path: Path, subpack: str = "") -> Path:
    if subpack:
        return pack_path / "subpacks" / subpack / "renderer" / "materials"
    return pack_path / "renderer" / "materials"


def _material_names(folder: Path) -> List[str]:
    try:
        return sorted(p.name for p in folder.iterdir() if MATERIAL_SUFFIX in p.name)
    except OSError:
        return []


def has_materials(pack: PackRecord, subpack: str = "") -> bool:
    if _material_names(materials_dir(pack.path)):
        return True
    return bool(subpack) and bool(_material_names(materials_dir(pack.path, subpack)))


def clear_directory(target_dir: Path) -> int:
    """Remove tudo que estiver diretamente dentro de target_dir.

    Falhas de remoção são avisadas e ignoradas.
    """
    try:
        entries = sorted(target_dir.iterdir())
    except OSError as e:
        warn(f"Não foi possível ler {escape(str(target_dir))}: {escape(str(e))}")
        return 0

    removed = 0
    for entry in entries:
        try:
            if entry.is_dir() and not entry.is_symlink():
                entry.rmdir()
            else:
                entry.unlink()
            removed += 1
        except OSError as e:
            warn(f"Não foi possível remover {escape(entry.name)}: {escape(str(e))}")
    return removed


def link_materials(source_dir: Path, target_dir: Path, replace: bool = False) -> int:
    """Cria em target_dir um symlink para cada *.material.bin de source_dir.

    Com replace=True, um item de mesmo nome em target_dir é removido antes.
    """
    linked = 0
    for name in _material_names(source_dir):
        source = Path(os.path.abspath(source_dir / name))
        link = target_dir / name
        try:
            if replace and (link.exists() or link.is_symlink()):
                link.unlink()
            link.symlink_to(source)
            linked += 1
        except OSError as e:
            warn(f"Falha ao criar symlink para {escape(name)}: {escape(str(e))}")
    return linked


def sync_shader_links(pack: Optional[PackRecord], subpack: str, target_dir: Path) -> int:
    """Esvazia target_dir e recria os symlinks do pack (e do subpack).

    Materiais do subpack substituem os do pack principal com o mesmo nome.
    Retorna o número de symlinks criados.
    """
    clear_directory(target_dir)
    if pack is None:
        return 0

    linked = link_materials(materials_dir(pack.path), target_dir)
    if subpack:
        linked += link_materials(materials_dir(pack.path, subpack), target_dir, replace=True)
    return linked


# -------------------------
# Launcher
# -------------------------

def detect_launcher_roots(home: Path) -> List[Path]:
    """Instalações conhecidas do mcpelauncher que existem, em ordem de preferência."""
    return [home / rel for rel in KNOWN_ROOTS if (home / rel).is_dir()]


def locate_launcher_root(home: Path, interactive: bool = False) -> Path:
    found = detect_launcher_roots(home)

    if len(found) > 1 and interactive:
        inquirer, Choice, _ = tui()
        return inquirer.select(
            message=f"Instalações detectadas ({len(found)}):",
            choices=[Choice(value=p, name=str(p)) for p in found],
            default=found[0],
        ).execute()

    if found:
        root = found[0]
        label = "padrão" if root == home / KNOWN_ROOTS[0] else "alternativo"
        info(f"Usando caminho {label}: {escape(str(root))}")
        return root

    if interactive:
        inquirer, _, PathValidator = tui()
        info("Nenhuma instalação detectada automaticamente.")
        return Path(inquirer.filepath(
            message="Selecione a pasta do mcpelauncher:",
            default=str(home),
            only_directories=True,
            validate=PathValidator(is_dir=True, message="Selecione um diretório válido."),
        ).execute())

    info("Procurado em:")
    for rel in KNOWN_ROOTS:
        info(f"  - {escape(str(home / rel))}")
    raise LauncherNotFoundError("mcpelauncher não encontrado em nenhum local conhecido")


def display_path(path: Path, home: Optional[Path] = None) -> str:
    """Troca o prefixo do diretório home por $HOME."""
    text = str(path)
    home_s = str(home if home is not None else Path.home())
    if home_s and text.startswith(home_s):
        return "$HOME" + text[len(home_s):]
    return text


def run_sync(root: Path, home: Optional[Path] = None) -> int:
    data_dir = root / DATA_SUBDIR
    shaders_dir = root / SHADERS_DIR
    registry_path = data_dir / REGISTRY_SUBPATH

    if not registry_path.is_file():
        raise RegistryError(f"{registry_path.name} não encontrado.")

    info("Obtendo lista de resource packs...")
    catalog = build_catalog(data_dir)
    info(f"Encontrados {len(catalog)} packs")

    selector = load_active_selector(registry_path)
    pack = resolve_active_pack(catalog, selector)

    if pack is not None:
        ok(f"Pack global ativo: {escape(pack.name)} v{selector.version} ({escape(selector.pack_id)})")
        info(f"Pasta do pack:    {escape(str(pack.path))}")
        if selector.subpack:
            info(f"Subpack:          {escape(str(pack.path / 'subpacks' / selector.subpack))}")
        else:
            info("Subpack:          nenhum")
    else:
        warn("Pack ativo não encontrado entre os packs escaneados")

    if not shaders_dir.is_dir():
        info("Crie a pasta manualmente:")
        info(f'    mkdir -p "{escape(str(shaders_dir))}"')
        raise ShadersDirError("Pasta shaders não encontrada.")

    if pack is None:
        warn("Nenhum pack ativo, esvaziando a pasta shaders...")
        sync_shader_links(None, "", shaders_dir)
        return 0

    if not has_materials(pack, selector.subpack):
        warn(f"Nenhum arquivo {MATERIAL_SUFFIX} encontrado no pack.")
        info("Esvaziando a pasta shaders...")
        sync_shader_links(None, "", shaders_dir)
        return 0

    linked = sync_shader_links(pack, selector.subpack, shaders_dir)
    ok(f"{linked} symlinks de materiais criados em {escape(display_path(shaders_dir, home))}")
    info("Tenha um bom dia!")
    return 0


# -------------------------
# Main
# -------------------------

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Trinity Shaders - symlinks dos materiais do resource pack ativo")
    parser.add_argument("--root", type=Path, help="Pasta raiz do mcpelauncher (pula a detecção automática)")
    parser.add_argument("-i", "--interactive", action="store_true", help="Escolher a instalação em um menu quando houver mais de uma (ou nenhuma)")

    args = parser.parse_args(argv)

    title("Trinity Shaders")

    home = Path.home()
    try:
        if args.root is not None:
            if not args.root.is_dir():
                raise LauncherNotFoundError(f"Pasta não encontrada: {args.root}")
            root = args.root
        else:
            root = locate_launcher_root(home, interactive=args.interactive)
        return run_sync(root, home)
    except RuntimeError as e:
        err(escape(str(e)))
        return 1


def cli() -> None:
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        goodbye_msg()
        raise SystemExit(130)


if __name__ == "__main__":
    cli()
