"""
Unit tests for heuristic key-point extraction and the fallback summary
"""
from app.services.fallback import (
    MAX_KP,
    extract_fallback_key_points,
    generate_enhanced_fallback,
)
from app.services.placement import SpanSet
from app.services.spans import MAX_PHRASE_LEN, MIN_PHRASE_LEN, Span

CELLS = " ".join([
    "Cells are the basic unit of all known living organisms.",
    "Every cell contains genetic material in the form of DNA.",
    "Membranes separate the interior of a cell from its outside.",
    "Mitochondria produce most of the chemical energy in cells.",
    "Ribosomes assemble proteins from amino acid building blocks.",
    "The nucleus stores most of the genetic material of a cell.",
    "Plant cells also have a rigid wall made mostly of cellulose.",
    "Cell division allows organisms to grow and repair tissues.",
    "Some cells move using whip-like structures called flagella.",
])
LEAVES = "Photosynthesis converts light into energy. It happens in chloroplasts found in plant leaves and algae."
BIOLOGY = CELLS + "\n\n" + LEAVES

QUOTED = (
    "Short note here. The rule reads “energy can never be created or destroyed” in every textbook "
    "that we own and use daily, and it keeps showing up in lectures, exams, homework sets, lab manuals "
    "and review sheets throughout the whole school year"
)


def assert_well_formed(text, key_points):
    starts = [kp.start_pos for kp in key_points]
    assert starts == sorted(starts)
    for kp in key_points:
        assert text[kp.start_pos:kp.end_pos].strip() == kp.text
        assert MIN_PHRASE_LEN <= kp.end_pos - kp.start_pos <= MAX_PHRASE_LEN
    for a, b in zip(key_points, key_points[1:]):
        assert a.end_pos <= b.start_pos


class TestExtractFallbackKeyPoints:
    def test_sentences_then_paragraph_leads(self):
        """Sentence stage stops at the minimum count; paragraph stage adds the next lead"""
        key_points = extract_fallback_key_points(BIOLOGY, 20)
        assert len(key_points) == 9
        assert all(kp.importance == "high" and kp.category == "fact" for kp in key_points[:8])
        last = key_points[-1]
        assert last.importance == "medium"
        assert last.text == "Photosynthesis converts light into energy."
        assert last.start_pos == BIOLOGY.index("Photosynthesis")
        assert_well_formed(BIOLOGY, key_points)

    def test_respects_max_points(self):
        key_points = extract_fallback_key_points(BIOLOGY, 3)
        assert [kp.start_pos for kp in key_points] == [0, 56, 113]

    def test_zero_points(self):
        assert extract_fallback_key_points(BIOLOGY, 0) == []

    def test_skips_taken_spans(self):
        key_points = extract_fallback_key_points(BIOLOGY, 20, [Span(0, 56)])
        assert key_points[0].start_pos == 56
        assert all(not Span(kp.start_pos, kp.end_pos).overlaps(Span(0, 56)) for kp in key_points)

    def test_quoted_definition(self):
        """Quoted passages stay anchored to the quotation"""
        key_points = extract_fallback_key_points(QUOTED, MAX_KP)
        assert len(key_points) == 1
        kp = key_points[0]
        assert kp.text == "energy can never be created or destroyed"
        assert kp.category == "definition"
        assert kp.importance == "high"
        assert QUOTED[kp.start_pos:kp.end_pos] == kp.text

    def test_paragraph_lead_found_in_its_own_paragraph(self):
        """A lead sentence repeated earlier in the text is placed in its own paragraph"""
        lead = "Heat makes water boil fast."
        text = (
            lead + " Cold water takes much longer to reach its boiling point.\n\n"
            + lead + " Steam carries that energy away from the pot quickly."
        )
        key_points = extract_fallback_key_points(text, 20, [Span(0, len(lead))])
        leads = [kp for kp in key_points if kp.text == lead]
        assert len(leads) == 1
        assert leads[0].start_pos == text.rindex(lead)
        assert leads[0].importance == "medium"
        assert_well_formed(text, key_points)

    def test_deterministic_and_side_effect_free(self):
        """Same input, same output; the caller's taken spans are left alone"""
        taken = SpanSet([Span(0, 56)])
        first = extract_fallback_key_points(BIOLOGY, 10, taken)
        second = extract_fallback_key_points(BIOLOGY, 10, taken)
        assert first == second
        assert list(taken) == [Span(0, 56)]


class TestEnhancedFallback:
    def test_summary_layout(self):
        result = generate_enhanced_fallback(BIOLOGY, "en")
        assert result.summary.startswith("## Main Points")
        assert "**1. Cells are the basic unit of all known living organisms.**" in result.summary
        assert "## Conclusion\n\nPhotosynthesis converts light into energy." in result.summary
        assert 0 < len(result.key_points) <= MAX_KP
        assert_well_formed(BIOLOGY, result.key_points)

    def test_french_headings(self):
        result = generate_enhanced_fallback(BIOLOGY, "fr")
        assert result.summary.startswith("## Points Principaux")

    def test_single_paragraph_has_no_conclusion(self):
        result = generate_enhanced_fallback(CELLS, "en")
        assert "## Conclusion" not in result.summary
