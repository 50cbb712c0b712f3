import json

import numpy as np
import pytest
from PIL import Image

from core.recognition import (
    EnrollmentLoader,
    Identity,
    RosterError,
    load_image,
    load_roster,
    roster_from_faces_dir,
    validate_roster,
)
from helpers import StubBackend, vec


def test_enrolls_every_identity_in_roster_order(roster, enroller):
    learned = enroller.enroll(roster)

    assert [item.label for item in learned] == ["Ashri Singh", "Sumit Sinha"]
    np.testing.assert_allclose(learned[1].embedding, vec(1.0, 1.0, 1.0))


def test_failures_are_skipped_without_aborting():
    backend = StubBackend(references={
        "a.jpg": vec(0.0, 0.0),
        "broken.jpg": OSError("404 Not Found"),
        "noface.jpg": None,
        "d.jpg": vec(1.0, 0.0),
    })
    roster = [
        Identity("A", "a.jpg"),
        Identity("B", "broken.jpg"),
        Identity("C", "noface.jpg"),
        Identity("D", "d.jpg"),
    ]

    learned = EnrollmentLoader(backend, image_loader=lambda ref: ref).enroll(roster)

    assert [item.label for item in learned] == ["A", "D"]


def test_image_loader_errors_are_skipped():
    backend = StubBackend(references={"a.jpg": vec(0.0)})

    def loader(ref):
        if ref == "missing.jpg":
            raise FileNotFoundError(ref)
        return ref

    learned = EnrollmentLoader(backend, image_loader=loader).enroll(
        [Identity("Missing", "missing.jpg"), Identity("A", "a.jpg")]
    )

    assert [item.label for item in learned] == ["A"]


def test_empty_roster_learns_nothing(enroller):
    assert enroller.enroll([]) == []


def test_roster_validation():
    with pytest.raises(RosterError):
        validate_roster([Identity("A", "a.jpg"), Identity("A", "b.jpg")])
    with pytest.raises(RosterError):
        validate_roster([Identity("unknown", "a.jpg")])
    with pytest.raises(RosterError):
        validate_roster([Identity("  ", "a.jpg")])


def test_load_roster_from_json(tmp_path):
    roster_file = tmp_path / "roster.json"
    roster_file.write_text(json.dumps({"students": [
        {"name": "Ashri Singh", "image": "/faces/ashri.jpg", "student_id": 101},
        {"name": "Sumit Sinha", "image": "https://example.org/sumit.jpg"},
    ]}), encoding="utf-8")

    roster = load_roster(roster_file)

    assert roster == [
        Identity("Ashri Singh", "/faces/ashri.jpg", "101"),
        Identity("Sumit Sinha", "https://example.org/sumit.jpg", None),
    ]
    assert roster[0].remote_id == "101"
    assert roster[1].remote_id == "Sumit Sinha"


def test_load_roster_rejects_bad_entries(tmp_path):
    roster_file = tmp_path / "roster.json"
    roster_file.write_text(json.dumps([{"name": "No Image"}]), encoding="utf-8")

    with pytest.raises(RosterError):
        load_roster(roster_file)
    with pytest.raises(RosterError):
        load_roster(tmp_path / "missing.json")


def test_roster_from_faces_dir(tmp_path):
    for filename in ["2_Sumit_Sinha.jpg", "1_Ashri_Singh.png", "Mona.jpeg", "notes.txt"]:
        (tmp_path / filename).write_bytes(b"")

    roster = roster_from_faces_dir(tmp_path)

    assert roster == [
        Identity("Ashri Singh", "1_Ashri_Singh.png", "1"),
        Identity("Sumit Sinha", "2_Sumit_Sinha.jpg", "2"),
        Identity("Mona", "Mona.jpeg", None),
    ]
    assert roster_from_faces_dir(tmp_path / "nope") == []


def test_load_image_relative_to_faces_dir(tmp_path):
    Image.new("L", (8, 6), color=128).save(tmp_path / "gray.png")

    image = load_image("/gray.png", base_dir=tmp_path)

    assert image.shape == (6, 8, 3)
    assert image.dtype == np.uint8


def test_roster_from_faces_dir_with_configured_extensions(tmp_path):
    for filename in ["1_Ashri_Singh.webp", "2_Sumit_Sinha.jpg"]:
        (tmp_path / filename).write_bytes(b"")

    roster = roster_from_faces_dir(tmp_path, extensions={"webp"})

    assert [identity.name for identity in roster] == ["Ashri Singh"]
