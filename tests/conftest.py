import pytest

from core.models import BeamGroup, SolutionContext, Span, SpanResultData
from core.settings import RebarSettings


def make_group(name="B1", lengths=(6000, 6000), width=300, depth=600, **kwargs):
    spans = tuple(Span(f"S{i + 1}", length, width, depth) for i, length in enumerate(lengths))
    return BeamGroup(name=name, spans=spans, width=width, depth=depth, **kwargs)


def make_context(group, results, settings=None, top=(2, 20), bot=(2, 20), width=None):
    ctx = SolutionContext(group=group, span_results=list(results), settings=settings or RebarSettings())
    ctx.scenario_id = f"T:{top[0]}D{top[1]}/B:{bot[0]}D{bot[1]}"
    ctx.top_backbone_count, ctx.top_backbone_diameter = top
    ctx.bot_backbone_count, ctx.bot_backbone_diameter = bot
    ctx.beam_width = width if width is not None else group.width
    ctx.allowed_diameters = tuple(ctx.settings.main_bar_diameters)
    return ctx


@pytest.fixture
def settings():
    return RebarSettings()


@pytest.fixture
def two_span_group():
    return make_group()


@pytest.fixture
def two_span_results():
    return [
        SpanResultData(top_area=(5.0, 2.0, 12.0), bot_area=(2.0, 9.0, 2.0), start_support_type="COLUMN"),
        SpanResultData(top_area=(12.0, 2.0, 5.0), bot_area=(2.0, 9.0, 2.0), end_support_type="WALL"),
    ]
