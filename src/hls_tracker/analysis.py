"""Language-model interpretation of band statistics."""

from typing import Any

from dagster import AssetExecutionContext, OpExecutionContext
from openai import OpenAIError

from hls_tracker.config.constants import (
    ANALYSIS_MAX_TOKENS,
    ANALYSIS_TEMPERATURE,
    ANALYSIS_TOP_P,
    BAND_ASSET_NAME,
    DEFAULT_OPENAI_MODEL,
)
from hls_tracker.exceptions import AnalysisUnavailable


def build_analysis_messages(
    mgrs_cell: str,
    cloud_cover_pct: float,
    image_mean: float,
    tile_means: list[float],
) -> list[dict[str, str]]:
    """Compose the system and user messages for one scene.

    :param mgrs_cell: MGRS cell of the tracker
    :param cloud_cover_pct: Cloud cover percentage
    :param image_mean: Image mean
    :param tile_means: Tile means in scan order
    :returns: Role-tagged message list
    """
    system = (
        f"You are a satellite. You are looking at the {BAND_ASSET_NAME} band of a part of the Earth's surface "
        f"at MGRS {mgrs_cell}. Your task is to take the average darkness of the image and the average darkness "
        "of the tiles and come up with reasonable explanations for what you are seeing."
    )
    user = (
        f"This image has a cloud cover level of {cloud_cover_pct}%. "
        f"The average darkness of the image is {image_mean}. "
        f"The average darkness of the {len(tile_means)} tiles in this image is "
        f"{', '.join(str(v) for v in tile_means)}."
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


async def request_analysis(
    context: OpExecutionContext | AssetExecutionContext,
    openai_client: Any,
    mgrs_cell: str,
    cloud_cover_pct: float,
    image_mean: float,
    tile_means: list[float],
    model: str = DEFAULT_OPENAI_MODEL,
) -> str:
    """Ask the language model to interpret the band statistics.

    Not retried: a failed completion ends the run.

    :param context: Dagster context
    :param openai_client: AsyncOpenAI client
    :param mgrs_cell: MGRS cell of the tracker
    :param cloud_cover_pct: Cloud cover percentage
    :param image_mean: Image mean
    :param tile_means: Tile means in scan order
    :param model: Chat model name
    :returns: Narrative text, verbatim
    :raises AnalysisUnavailable: If the completion fails or is empty
    """
    messages = build_analysis_messages(mgrs_cell, cloud_cover_pct, image_mean, tile_means)
    context.log.info(f"Requesting analysis from {model} for {len(tile_means)} tiles")

    try:
        response = await openai_client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=ANALYSIS_TEMPERATURE,
            max_tokens=ANALYSIS_MAX_TOKENS,
            top_p=ANALYSIS_TOP_P,
            frequency_penalty=0,
            presence_penalty=0,
        )
    except OpenAIError as e:
        raise AnalysisUnavailable(f"Analysis request to {model} failed: {e}") from e

    if not response.choices or not response.choices[0].message.content:
        raise AnalysisUnavailable(f"Analysis response from {model} had no content")
    return response.choices[0].message.content
