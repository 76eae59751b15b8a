"""本機 H5P 引擎

將 .h5p 封裝存入檔案系統的 content store，並輸出 SCORM 1.2 封裝或 HTML 網頁組合。
只重新包裝封裝內既有的內容與函式庫，不含 H5P 播放器本身。
"""

import html
import io
import json
import logging
import shutil
import uuid
import zipfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from h5pbatch.core.engine import EnginePaths, ExportJob, Operator, Translator, default_translate
from h5pbatch.core.errors import ExportError, PackageError
from h5pbatch.core.formats import ExportFormat, ExportOptions

logger = logging.getLogger(__name__)

H5P_JSON = "h5p.json"
CONTENT_DIR = "content"
CONTENT_JSON = "content.json"
LIBRARY_JSON = "library.json"
LIBRARIES_DIR = "libraries"


def library_name(dependency: dict[str, Any]) -> str:
    """取得函式庫目錄名稱，如 H5P.MultiChoice-1.16"""
    try:
        return f"{dependency['machineName']}-{dependency['majorVersion']}.{dependency['minorVersion']}"
    except (KeyError, TypeError) as e:
        raise PackageError(f"Invalid library dependency: {dependency!r}") from e


@dataclass
class H5PPackage:
    """解析後的 H5P 封裝"""

    metadata: dict[str, Any]
    parameters: dict[str, Any]
    # content/ 底下的檔案（含 content.json），key 為相對路徑
    content_files: dict[str, bytes] = field(default_factory=dict)
    # 函式庫目錄名稱 -> {相對路徑: 內容}
    libraries: dict[str, dict[str, bytes]] = field(default_factory=dict)

    @property
    def main_library(self) -> str:
        main = self.metadata["mainLibrary"]
        for dependency in self.metadata.get("preloadedDependencies", []):
            if dependency.get("machineName") == main:
                return library_name(dependency)
        raise PackageError(f"Main library {main} is missing from preloadedDependencies")

    @property
    def title(self) -> str:
        return str(self.metadata.get("title") or "Untitled")


def _load_json(raw: bytes, name: str) -> Any:
    try:
        return json.loads(raw.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PackageError(f"{name} is not valid JSON: {e}") from e


def _is_safe_member(name: str) -> bool:
    """封裝內路徑不可跳出解壓目錄

    Windows 會把反斜線與磁碟代號視為路徑的一部分，因此一律拒絕。
    """
    if "\\" in name or ":" in name:
        return False
    path = PurePosixPath(name)
    return not path.is_absolute() and ".." not in path.parts


def read_package(data: bytes) -> H5PPackage:
    """
    解析 H5P 封裝

    Args:
        data: .h5p 檔案內容

    Returns:
        H5PPackage

    Raises:
        PackageError: 不是 zip 檔、缺少 h5p.json 或 content.json、路徑不安全
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise PackageError(f"Not a valid H5P archive: {e}") from e

    files: dict[str, bytes] = {}
    with archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            if not _is_safe_member(info.filename):
                raise PackageError(f"Unsafe path in archive: {info.filename}")
            path = PurePosixPath(info.filename)
            try:
                files[path.as_posix()] = archive.read(info)
            except (zipfile.BadZipFile, OSError) as e:
                raise PackageError(f"Cannot read {info.filename}: {e}") from e

    if H5P_JSON not in files:
        raise PackageError(f"{H5P_JSON} is missing")
    metadata = _load_json(files[H5P_JSON], H5P_JSON)
    if not isinstance(metadata, dict) or not metadata.get("mainLibrary"):
        raise PackageError(f"{H5P_JSON} does not declare a mainLibrary")

    content_json = f"{CONTENT_DIR}/{CONTENT_JSON}"
    if content_json not in files:
        raise PackageError(f"{content_json} is missing")
    parameters = _load_json(files[content_json], content_json)

    package = H5PPackage(metadata=metadata, parameters=parameters)
    prefix = f"{CONTENT_DIR}/"
    for name, raw in files.items():
        if name.startswith(prefix):
            package.content_files[name[len(prefix):]] = raw
            continue
        top, _, rest = name.partition("/")
        if rest and f"{top}/{LIBRARY_JSON}" in files:
            package.libraries.setdefault(top, {})[rest] = raw

    for name, library_files in package.libraries.items():
        _load_json(library_files[LIBRARY_JSON], f"{name}/{LIBRARY_JSON}")

    return package


def _write_tree(root: Path, files: dict[str, bytes]) -> None:
    for name, raw in files.items():
        target = root / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(raw)


def _iter_files(root: Path):
    """依排序產生 (相對 POSIX 路徑, 絕對路徑)"""
    for path in sorted(root.rglob("*")):
        if path.is_file():
            yield path.relative_to(root).as_posix(), path


class LocalH5PEngine:
    """以檔案系統實作的內容引擎"""

    def __init__(self, paths: EnginePaths, translate: Translator = default_translate):
        self.paths = paths
        self.translate = translate

    def import_package(self, data: bytes, operator: Operator) -> str:
        """
        匯入 H5P 封裝

        Args:
            data: .h5p 檔案內容
            operator: 執行者身分

        Returns:
            content id

        Raises:
            PackageError: 封裝損毀或不支援的內容類型
        """
        package = read_package(data)
        main_library = package.main_library

        for name, library_files in package.libraries.items():
            self._install_library(name, library_files)

        if not (self.paths.libraries / main_library).is_dir():
            raise PackageError(f"Unsupported content type: {main_library} is not installed")

        content_id = uuid.uuid4().hex
        staging = self.paths.tmp / f"import-{content_id}"
        try:
            staging.mkdir(parents=True)
            (staging / H5P_JSON).write_text(
                json.dumps(package.metadata, ensure_ascii=False, indent=2), encoding="utf-8"
            )
            _write_tree(staging / CONTENT_DIR, package.content_files)
            self.paths.content.mkdir(parents=True, exist_ok=True)
            staging.rename(self.paths.content / content_id)
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise PackageError(f"Could not store content: {e}") from e

        logger.debug(f"Stored content {content_id} ({package.title}) for operator {operator.id}")
        return content_id

    def _install_library(self, name: str, files: dict[str, bytes]) -> None:
        target = self.paths.libraries / name
        if target.exists():
            return
        staging = self.paths.tmp / f"library-{uuid.uuid4().hex}"
        try:
            _write_tree(staging, files)
            self.paths.libraries.mkdir(parents=True, exist_ok=True)
            staging.rename(target)
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise PackageError(f"Could not install library {name}: {e}") from e
        logger.debug(f"Installed library {name}")

    def export_content(self, job: ExportJob, operator: Operator) -> None:
        """
        匯出內容

        Raises:
            ExportError: 內容不存在、CSS 無法讀取或寫入失敗
        """
        content_root = self.paths.content / job.content_id
        if not content_root.is_dir():
            raise ExportError(f"Content {job.content_id} does not exist")

        try:
            metadata = json.loads((content_root / H5P_JSON).read_text(encoding="utf-8"))
            parameters = json.loads(
                (content_root / CONTENT_DIR / CONTENT_JSON).read_text(encoding="utf-8")
            )
            css = job.options.css_path.read_text(encoding="utf-8") if job.options.css_path else ""
        except (OSError, ValueError) as e:
            # ValueError 包含 JSONDecodeError 與 UnicodeDecodeError
            raise ExportError(f"Could not load content {job.content_id}: {e}") from e

        libraries = [
            library_name(dep)
            for dep in metadata.get("preloadedDependencies", [])
            if (self.paths.libraries / library_name(dep)).is_dir()
        ]

        try:
            if job.format is ExportFormat.SCORM:
                self._export_scorm(job, content_root, metadata, parameters, libraries, css)
            else:
                self._export_external(job, content_root, metadata, parameters, libraries, css)
        except OSError as e:
            raise ExportError(f"Could not write {job.target_path}: {e}") from e

        logger.debug(f"Operator {operator.id} exported {job.content_id} as {job.format.value}")

    def _export_scorm(self, job, content_root, metadata, parameters, libraries, css) -> None:
        page = render_page(job, metadata, parameters, libraries, css, "", self.translate)
        title = str(metadata.get("title") or "Untitled")

        entries: list[tuple[str, Path]] = list(_iter_files(content_root / CONTENT_DIR))
        entries = [(f"{CONTENT_DIR}/{name}", path) for name, path in entries]
        for library in libraries:
            entries.extend(
                (f"{LIBRARIES_DIR}/{library}/{name}", path)
                for name, path in _iter_files(self.paths.libraries / library)
            )

        manifest = render_manifest(
            job.content_id, title, job.options, ["index.html"] + [name for name, _ in entries]
        )

        try:
            with zipfile.ZipFile(job.target_path, "w", zipfile.ZIP_DEFLATED) as archive:
                archive.writestr("imsmanifest.xml", manifest)
                archive.writestr("index.html", page)
                for name, path in entries:
                    archive.write(path, name)
        except OSError:
            job.target_path.unlink(missing_ok=True)
            raise

    def _export_external(self, job, content_root, metadata, parameters, libraries, css) -> None:
        # index.html 的媒體放在同層的 index/ 目錄
        asset_dir = job.target_path.with_suffix("")
        if asset_dir.exists():
            shutil.rmtree(asset_dir)
        shutil.copytree(content_root / CONTENT_DIR, asset_dir / CONTENT_DIR)
        for library in libraries:
            shutil.copytree(self.paths.libraries / library, asset_dir / LIBRARIES_DIR / library)

        page = render_page(
            job, metadata, parameters, libraries, css, f"{asset_dir.name}/", self.translate
        )
        job.target_path.write_text(page, encoding="utf-8")

    def delete_content(self, content_id: str, operator: Operator) -> None:
        """刪除 content store 中的內容，不存在時忽略"""
        content_root = self.paths.content / content_id
        if not content_root.exists():
            return
        shutil.rmtree(content_root)
        logger.debug(f"Operator {operator.id} deleted content {content_id}")


def render_page(
    job: ExportJob,
    metadata: dict[str, Any],
    parameters: Any,
    libraries: list[str],
    css: str,
    asset_prefix: str,
    translate: Translator,
) -> str:
    """產生匯出用的 index.html"""
    options: ExportOptions = job.options
    title = html.escape(str(metadata.get("title") or "Untitled"))

    integration = {
        "contentId": job.content_id,
        "title": metadata.get("title"),
        "language": options.language,
        "mainLibrary": metadata.get("mainLibrary"),
        "contentUrl": f"{asset_prefix}{CONTENT_DIR}",
        "librariesUrl": f"{asset_prefix}{LIBRARIES_DIR}",
        "libraries": libraries,
        "params": parameters,
        "metadata": {
            key: metadata[key]
            for key in ("license", "authors", "source", "yearFrom", "yearTo")
            if key in metadata
        },
        "displayOptions": {
            "frame": options.show_embed or options.show_rights,
            "embed": options.show_embed,
            "copyright": options.show_rights,
            "export": False,
            "icon": False,
        },
        "reporter": options.include_reporter,
        "l10n": {
            "embed": translate("embed"),
            "rightsOfUse": translate("rights-of-use"),
        },
    }
    if options.format is ExportFormat.SCORM:
        integration["scorm"] = {"masteryScore": options.mastery_score}

    # 避免 </script> 提前結束 script 區塊
    payload = json.dumps(integration, ensure_ascii=False, indent=2).replace("</", "<\\/")

    container_css = ".h5p-container { width: 100%; }"
    if options.restrict_width_and_center:
        container_css = f".h5p-container {{ max-width: {options.max_width}px; margin: 0 auto; }}"

    custom_css = f"\n  <style>\n{css}\n  </style>" if css else ""

    return f"""<!DOCTYPE html>
<html lang="{html.escape(options.language)}">
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <style>
    body {{ margin: {options.margin_y}px {options.margin_x}px; }}
    {container_css}
  </style>{custom_css}
</head>
<body>
  <div class="h5p-container" data-content-id="{html.escape(job.content_id)}"></div>
  <noscript>{html.escape(translate("no-javascript"))}</noscript>
  <script type="application/json" id="h5p-integration">
{payload}
  </script>
</body>
</html>
"""


def render_manifest(content_id: str, title: str, options: ExportOptions, files: list[str]) -> str:
    """產生 SCORM 1.2 imsmanifest.xml"""
    file_xml = "\n".join(
        f'      <file href="{html.escape(name)}"/>' for name in files
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<manifest identifier="h5p-{content_id}" version="1"
          xmlns="http://www.imsproject.org/xsd/imscp_rootv1p1p2"
          xmlns:adlcp="http://www.adlnet.org/xsd/adlcp_rootv1p2"
          xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
          xsi:schemaLocation="http://www.imsproject.org/xsd/imscp_rootv1p1p2 imscp_rootv1p1p2.xsd
                              http://www.adlnet.org/xsd/adlcp_rootv1p2 adlcp_rootv1p2.xsd">
  <metadata>
    <schema>ADL SCORM</schema>
    <schemaversion>1.2</schemaversion>
  </metadata>
  <organizations default="h5p-org">
    <organization identifier="h5p-org">
      <title>{html.escape(title)}</title>
      <item identifier="item-1" identifierref="resource-1" isvisible="true">
        <title>{html.escape(title)}</title>
        <adlcp:masteryscore>{options.mastery_score}</adlcp:masteryscore>
      </item>
    </organization>
  </organizations>
  <resources>
    <resource identifier="resource-1" type="webcontent" adlcp:scormtype="sco" href="index.html">
{file_xml}
    </resource>
  </resources>
</manifest>
"""
