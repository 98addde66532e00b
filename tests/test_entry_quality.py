from swingtrack.quality import EntryQuality, EntryQualityClassifier, QualityThresholds
from swingtrack.quality.classifier import planned_quantity, resize_for_risk


def test_quality_bands_at_boundaries():
    classifier = EntryQualityClassifier()

    assert classifier.classify(100.0, 100.0, 95.0).quality == EntryQuality.GOOD
    assert classifier.classify(102.0, 100.0, 95.0).quality == EntryQuality.GOOD
    assert classifier.classify(102.5, 100.0, 95.0).quality == EntryQuality.EXTENDED
    assert classifier.classify(105.0, 100.0, 95.0).quality == EntryQuality.EXTENDED
    assert classifier.classify(105.5, 100.0, 95.0).quality == EntryQuality.OVEREXTENDED
    assert classifier.classify(99.0, 100.0, 95.0).quality == EntryQuality.GAP_DOWN
    assert classifier.classify(94.0, 100.0, 95.0).quality == EntryQuality.BELOW_STOP


def test_assessment_reports_rounded_premium_and_rr():
    assessment = EntryQualityClassifier().classify(103.0, 100.0, 95.0)

    assert assessment.premium_pct == 3.0
    assert assessment.adjusted_rr == 1.6
    assert "reduced" in assessment.recommendation
    assert not assessment.skips_entry


def test_extended_without_positive_risk_is_overextended():
    assessment = EntryQualityClassifier().classify(103.0, 100.0, 100.0)

    assert assessment.quality == EntryQuality.OVEREXTENDED
    assert assessment.adjusted_rr is None
    assert assessment.skips_entry


def test_size_keeps_risk_constant_for_extended_fill():
    classifier = EntryQualityClassifier()

    assert classifier.size(1000, 101.0, 100.0, 95.0) == 1000
    assert classifier.size(1000, 99.0, 100.0, 95.0) == 1000
    assert classifier.size(1000, 103.0, 100.0, 95.0) == 625
    assert classifier.size(1000, 106.0, 100.0, 95.0) == 0
    assert classifier.size(1000, 94.0, 100.0, 95.0) == 0


def test_custom_thresholds():
    classifier = EntryQualityClassifier(QualityThresholds(good_max_pct=1.0, extended_max_pct=2.0))

    assert classifier.classify(101.5, 100.0, 95.0).quality == EntryQuality.EXTENDED
    assert classifier.classify(103.0, 100.0, 95.0).quality == EntryQuality.OVEREXTENDED


def test_quantity_helpers_floor():
    assert planned_quantity(100000, 333.0) == 300
    assert planned_quantity(100000, 0) == 0
    assert resize_for_risk(1000, 100.0, 95.0, 104.0) == 555
    assert resize_for_risk(1000, 100.0, 95.0, 95.0) == 0
