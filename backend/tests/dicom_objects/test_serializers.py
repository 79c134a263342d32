import base64
import json

from dicom_objects.models import (
    CompletionFlag,
    Finding,
    GraphicAnnotation,
    GraphicType,
    Image,
    KeyObjectSelection,
    Overlay,
    OverlayKind,
    PresentationState,
    Report,
    Series,
    Study,
    VerificationFlag,
)
from dicom_objects.serializers import finding_to_dict, overlay_to_dict, study_to_dict


def _study() -> Study:
    overlay = Overlay(
        group=0x6000,
        rows=2,
        columns=4,
        kind=OverlayKind.GRAPHIC,
        origin=(1, 1),
        data=bytes([1, 1, 0, 1, 0, 0, 0, 0]),
    )
    image = Image(
        sop_id="1.2.3.1.1",
        series_id="1.2.3.1",
        instance_number=1,
        file_path="/data/1.dcm",
        rows=2,
        columns=4,
        overlays=[overlay],
    )
    series = Series(
        series_id="1.2.3.1",
        study_id="1.2.3",
        series_number=1,
        description="AX",
        modality="CT",
        images=[image],
    )
    report = Report(
        sop_id="1.2.3.9.1",
        series_id="1.2.3.9",
        completion_flag=CompletionFlag.COMPLETE,
        verification_flag=VerificationFlag.UNVERIFIED,
        findings=[
            Finding(
                concept_name="Impression",
                value="Impression",
                value_type="CONTAINER",
                children=[Finding(concept_name="Impression", value="No acute findings", value_type="TEXT")],
            )
        ],
    )
    return Study(
        study_id="1.2.3",
        patient_name="Doe Jane",
        patient_id="P001",
        study_date="2024-01-01",
        description="CT HEAD",
        modality="CT",
        series=[series],
        reports=[report],
        key_object_selections=[KeyObjectSelection(sop_id="1.2.3.8.1", title="Key Images", key_images=["1.2.3.1.1"])],
        presentation_states=[
            PresentationState(
                sop_id="1.2.3.7.1",
                referenced_sop_ids=["1.2.3.1.1"],
                annotations=[GraphicAnnotation(GraphicType.CIRCLE, [10.0, 10.0, 13.0, 10.0])],
            )
        ],
    )


def test_study_to_dict_uses_camel_case_and_is_json_ready():
    payload = study_to_dict(_study())

    assert payload["studyInstanceUID"] == "1.2.3"
    assert payload["patientName"] == "Doe Jane"
    assert "institutionName" not in payload
    series = payload["series"][0]
    assert series["seriesNumber"] == 1
    image = series["images"][0]
    assert image["sopInstanceUID"] == "1.2.3.1.1"
    assert image["overlays"][0]["setPixels"] == 3
    assert "windowCenter" not in image
    assert payload["keyObjectSelections"][0]["keyImages"] == ["1.2.3.1.1"]
    assert payload["presentationStates"][0]["graphicAnnotations"][0]["graphicType"] == "CIRCLE"
    json.dumps(payload)


def test_finding_children_absent_not_empty():
    payload = study_to_dict(_study())

    container = payload["reports"][0]["findings"][0]
    assert container == {
        "conceptName": "Impression",
        "value": "Impression",
        "valueType": "CONTAINER",
        "children": [{"conceptName": "Impression", "value": "No acute findings", "valueType": "TEXT"}],
    }
    assert "children" not in finding_to_dict(Finding("Note", "text", "TEXT"))


def test_overlay_data_is_base64_when_requested():
    overlay = _study().series[0].images[0].overlays[0]

    payload = overlay_to_dict(overlay, include_data=True)

    assert base64.b64decode(payload["data"]) == overlay.data
    assert "setPixels" not in payload
