"""Outfit stage catalog tests."""

import pytest

from dealer_studio.core.exceptions import InvalidRequest, UnknownStage
from dealer_studio.models.domain.stages import list_stages, resolve_stage, stage_name


def test_stage_names():
    assert stage_name(1) == "Casino Uniform"
    assert stage_name(2) == "Relaxed Attire"
    assert stage_name(3) == "Casual/Formal"
    assert stage_name(4) == "Cocktail Attire"
    assert stage_name(5) == "Swimsuit/Lingerie"


@pytest.mark.parametrize("stage", [0, 6, -1, "1", None, 1.0, True])
def test_unknown_stage_rejected(stage):
    with pytest.raises(UnknownStage):
        stage_name(stage)


def test_unknown_stage_is_invalid_request():
    with pytest.raises(InvalidRequest) as exc_info:
        resolve_stage(9)
    assert exc_info.value.status_code == 400


def test_list_stages_ascending():
    stages = list_stages()
    assert [s.stage for s in stages] == [1, 2, 3, 4, 5]
    assert stages[0].name == "Casino Uniform"
