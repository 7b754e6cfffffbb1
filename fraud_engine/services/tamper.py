from fraud_engine.schemas import ImageAnalysis, ImageQualityMetrics
from fraud_engine.services.scoring import DOCUMENT_SCORING, DocumentScoringTable
from fraud_engine.utils.image import ImageStats

LOW_RESOLUTION = "Suspiciously low resolution - possible screenshot"
HIGH_COMPRESSION = "High compression - possible re-encoding after editing"
INCONSISTENT_PROPERTIES = "Inconsistent image properties - possible tampering"
ANALYSIS_FAILED = "Failed to analyze image quality"


def estimate_quality(channel_std_devs: list[float]) -> float:
    """Rough 0..100 quality proxy: twice the mean channel standard deviation."""
    if not channel_std_devs:
        return 0.0
    avg = sum(channel_std_devs) / len(channel_std_devs)
    return min(100.0, avg * 2)


def variance_ratio_exceeds(channel_std_devs: list[float], limit: float) -> bool:
    if not channel_std_devs:
        return False
    high, low = max(channel_std_devs), min(channel_std_devs)
    if low == 0:
        # a flat channel next to a textured one is the extreme case
        return high > 0
    return high / low > limit


def analyze_image(stats: ImageStats, table: DocumentScoringTable = DOCUMENT_SCORING) -> ImageAnalysis:
    """
    Turn pixel statistics into tamper indicators.

    Each raised flag adds one indicator and ``image_flag_penalty`` risk points.
    The score is left uncapped; the fraud aggregator clamps the total.
    """
    if stats.error or not stats.channel_std_devs:
        return ImageAnalysis(
            fraud_indicators=[ANALYSIS_FAILED],
            risk_score=table.image_failure_risk,
            error=stats.error or "Image analysis failed",
        )

    quality = estimate_quality(stats.channel_std_devs)
    metrics = ImageQualityMetrics(
        width=stats.width,
        height=stats.height,
        density_dpi=stats.density,
        format=stats.format,
        compression_estimate=quality,
        channel_variances=stats.channel_std_devs,
    )

    low_res = stats.width < table.min_width or stats.height < table.min_height
    compressed = quality < table.min_quality_estimate
    inconsistent = variance_ratio_exceeds(stats.channel_std_devs, table.max_channel_variance_ratio)

    indicators = []
    if low_res:
        indicators.append(LOW_RESOLUTION)
    if compressed:
        indicators.append(HIGH_COMPRESSION)
    if inconsistent:
        indicators.append(INCONSISTENT_PROPERTIES)

    return ImageAnalysis(
        metrics=metrics,
        is_low_resolution=low_res,
        is_highly_compressed=compressed,
        suspicious_editing=inconsistent,
        fraud_indicators=indicators,
        risk_score=len(indicators) * table.image_flag_penalty,
    )
