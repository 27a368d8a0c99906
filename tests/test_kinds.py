from pathlib import Path

import pytest

from job_backup.kinds import (
    Classifier,
    default_classifier,
    simplify_root_element,
    sniff_root_bytes,
    sniff_root_element,
    type_label,
)
from job_backup.models import ItemKind


@pytest.mark.parametrize(
    "root_element,expected",
    [
        ("com.cloudbees.hudson.plugins.folder.Folder", ItemKind.CONTAINER),
        ("project", ItemKind.LEAF),
        ("flow-definition", ItemKind.LEAF),
        ("org.jenkinsci.plugins.workflow.multibranch.WorkflowMultiBranchProject", ItemKind.LEAF),
        ("jenkins.branch.OrganizationFolder", ItemKind.LEAF),
        ("com.example.custom.Folder", ItemKind.CONTAINER),
        ("something-else", ItemKind.UNKNOWN),
        ("", ItemKind.UNKNOWN),
        (None, ItemKind.UNKNOWN),
    ],
)
def test_default_classifier(root_element, expected) -> None:
    assert default_classifier.classify(root_element) == expected


def test_organization_folder_is_not_a_container() -> None:
    assert not default_classifier.is_container("jenkins.branch.OrganizationFolder")


def test_registered_marker_overrides_default() -> None:
    classifier = Classifier()
    classifier.register("com.example.Group", ItemKind.CONTAINER)

    assert classifier.is_container("com.example.Group")
    assert not default_classifier.is_container("com.example.Group")


def test_sniff_reads_root_element(xml_payloads, tmp_path: Path) -> None:
    config = tmp_path / "config.xml"
    config.write_bytes(xml_payloads["folder"])

    assert sniff_root_element(config) == "com.cloudbees.hudson.plugins.folder.Folder"
    assert sniff_root_bytes(xml_payloads["pipeline"]) == "flow-definition"


def test_sniff_missing_or_malformed_is_empty(tmp_path: Path) -> None:
    broken = tmp_path / "config.xml"
    broken.write_bytes(b"not xml at all")

    assert sniff_root_element(tmp_path / "absent.xml") == ""
    assert sniff_root_element(None) == ""
    assert sniff_root_element(broken) == ""


def test_sniff_refuses_doctype() -> None:
    payload = (
        b'<?xml version="1.0"?>\n'
        b'<!DOCTYPE project [<!ENTITY x SYSTEM "file:///etc/passwd">]>\n'
        b"<project>&x;</project>\n"
    )

    assert sniff_root_bytes(payload) == ""


@pytest.mark.parametrize(
    "root_element,is_container,expected",
    [
        ("anything", True, "Folder"),
        ("flow-definition", False, "Pipeline"),
        ("project", False, "Freestyle"),
        ("maven2-moduleset", False, "Maven"),
        ("matrix-project", False, "Multi-configuration"),
        ("org.jenkinsci.plugins.workflow.multibranch.WorkflowMultiBranchProject", False, "Multibranch Pipeline"),
        ("jenkins.branch.OrganizationFolder", False, "Organization Folder"),
        ("com.example.CustomJob", False, "CustomJob"),
        ("", False, "Job"),
    ],
)
def test_type_label(root_element, is_container, expected) -> None:
    assert type_label(root_element, is_container) == expected


def test_simplify_root_element_keeps_trailing_dot_name() -> None:
    assert simplify_root_element("weird.") == "weird."
    assert simplify_root_element("") == "Job"
