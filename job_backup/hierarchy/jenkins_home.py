"""Item hierarchy backed by a ``JENKINS_HOME`` directory.

Top-level items live at ``jobs/<name>/config.xml``; children of a folder
live under that folder's own ``jobs`` directory.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from job_backup.constants import (
    CONFIG_FILENAME,
    FOLDER_PLUGIN_FILES,
    JOBS_DIRNAME,
    PLUGINS_DIRNAME,
)
from job_backup.errors import ContainerTypeUnavailableError, ParentNotCreatableError
from job_backup.hierarchy.interfaces import IItemHierarchy
from job_backup.kinds import Classifier, default_classifier, sniff_root_element, type_label
from job_backup.models import ItemDescriptor
from job_backup.paths import SEPARATOR, parent_of


logger = logging.getLogger(__name__)

STAGED_SUFFIX = ".staged"

FOLDER_TEMPLATE = """<?xml version='1.1' encoding='UTF-8'?>
<com.cloudbees.hudson.plugins.folder.Folder plugin="cloudbees-folder">
  <actions/>
  <description></description>
  <properties/>
  <folderViews class="com.cloudbees.hudson.plugins.folder.views.DefaultFolderViewHolder">
    <views>
      <hudson.model.AllView>
        <owner class="com.cloudbees.hudson.plugins.folder.Folder" reference="../../../.."/>
        <name>All</name>
        <filterExecutors>false</filterExecutors>
        <filterQueue>false</filterQueue>
        <properties class="hudson.model.View$PropertyList"/>
      </hudson.model.AllView>
    </views>
    <tabBar class="hudson.views.DefaultViewsTabBar"/>
  </folderViews>
  <healthMetrics/>
  <icon class="com.cloudbees.hudson.plugins.folder.icons.StockFolderIcon"/>
</com.cloudbees.hudson.plugins.folder.Folder>
"""


def is_valid_segment(name: str) -> bool:
    if not name or name in (".", ".."):
        return False
    return not any(char in name for char in ("/", "\\", "\x00"))


class JenkinsHomeHierarchy(IItemHierarchy):
    def __init__(
        self,
        root: Path,
        classifier: Optional[Classifier] = None,
        require_folder_plugin: bool = True,
    ) -> None:
        self._root = root
        self._classifier = classifier or default_classifier
        self._require_folder_plugin = require_folder_plugin

    @property
    def root(self) -> Path:
        return self._root

    @property
    def jobs_dir(self) -> Path:
        return self.root / JOBS_DIRNAME

    def item_dir(self, full_name: str) -> Path:
        current = self.root
        for segment in full_name.split(SEPARATOR):
            current = current / JOBS_DIRNAME / segment
        return current

    def config_path(self, full_name: str) -> Path:
        return self.item_dir(full_name) / CONFIG_FILENAME

    def container_type_available(self) -> bool:
        if not self._require_folder_plugin:
            return True
        plugins = self.root / PLUGINS_DIRNAME
        return any((plugins / name).is_file() for name in FOLDER_PLUGIN_FILES)

    def list_all(self) -> list[ItemDescriptor]:
        result: list[ItemDescriptor] = []
        self._walk(self.jobs_dir, None, result)
        return result

    def get_by_full_name(self, full_name: str) -> Optional[ItemDescriptor]:
        segments = full_name.split(SEPARATOR) if full_name else []
        if not segments or not all(is_valid_segment(item) for item in segments):
            return None
        config = self.config_path(full_name)
        if not config.is_file():
            return None
        return self._describe(full_name, config)

    def read_config_bytes(self, item: ItemDescriptor) -> Optional[bytes]:
        try:
            return self.config_path(item.full_name).read_bytes()
        except OSError as exc:
            logger.warning("Cannot read configuration of %s: %s", item.full_name, exc)
            return None

    def is_updatable(self, item: ItemDescriptor) -> bool:
        config = self.config_path(item.full_name)
        return config.is_file() and os.access(config, os.W_OK)

    def replace_config_bytes(self, item: ItemDescriptor, data: bytes) -> None:
        config = self.config_path(item.full_name)
        staged = config.with_name(config.name + STAGED_SUFFIX)
        staged.write_bytes(data)

    def can_create_in(self, parent: Optional[ItemDescriptor]) -> bool:
        if parent is None:
            return True
        return parent.is_container and self.config_path(parent.full_name).is_file()

    def create_from_config_bytes(
        self, parent: Optional[ItemDescriptor], leaf_name: str, data: bytes
    ) -> ItemDescriptor:
        full_name = self._child_name(parent, leaf_name)
        target = self.config_path(full_name)
        if target.exists():
            raise ValueError(f"Item already exists: {full_name}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Created item %s", full_name)
        return self._describe(full_name, target)

    def create_container(
        self, parent: Optional[ItemDescriptor], name: str
    ) -> ItemDescriptor:
        if not self.container_type_available():
            raise ContainerTypeUnavailableError(
                f"cloudbees-folder plugin not installed in {self.root / PLUGINS_DIRNAME}"
            )
        full_name = self._child_name(parent, name)
        self.item_dir(full_name).mkdir(parents=True, exist_ok=True)
        logger.info("Created folder %s", full_name)
        return ItemDescriptor.synthetic_folder(full_name)

    def persist(self, item: ItemDescriptor) -> None:
        config = self.config_path(item.full_name)
        staged = config.with_name(config.name + STAGED_SUFFIX)
        if staged.is_file():
            os.replace(staged, config)
            return
        if config.is_file():
            return
        if not item.is_container:
            raise FileNotFoundError(f"No configuration to persist for {item.full_name}")
        config.parent.mkdir(parents=True, exist_ok=True)
        config.write_text(FOLDER_TEMPLATE, encoding="utf-8")

    def _child_name(self, parent: Optional[ItemDescriptor], name: str) -> str:
        if not is_valid_segment(name):
            raise ValueError(f"Invalid item name: {name!r}")
        if parent is None:
            return name
        if not self.can_create_in(parent):
            raise ParentNotCreatableError(parent.full_name, parent.kind_label)
        return f"{parent.full_name}{SEPARATOR}{name}"

    def _describe(self, full_name: str, config: Path) -> ItemDescriptor:
        root_element = sniff_root_element(config)
        is_container = self._classifier.is_container(root_element)
        return ItemDescriptor(
            full_name=full_name,
            kind_label=type_label(root_element, is_container),
            is_container=is_container,
            parent_full_name=parent_of(full_name),
        )

    def _walk(
        self, jobs_dir: Path, prefix: Optional[str], result: list[ItemDescriptor]
    ) -> None:
        if not jobs_dir.is_dir():
            return
        for child in sorted(jobs_dir.iterdir(), key=lambda item: item.name.lower()):
            if child.is_symlink() or not child.is_dir():
                continue
            config = child / CONFIG_FILENAME
            if not config.is_file():
                continue
            full_name = f"{prefix}{SEPARATOR}{child.name}" if prefix else child.name
            item = self._describe(full_name, config)
            result.append(item)
            if item.is_container:
                self._walk(child / JOBS_DIRNAME, full_name, result)
