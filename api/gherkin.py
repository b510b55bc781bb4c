"""
Gherkin parsing and feature-file endpoints. No Jira calls.
"""
from typing import List
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
import logging

from services.feature_files import (
    FeatureFileError,
    load_feature_folder,
    save_feature_files,
    split_feature_files,
)
from services.gherkin_parser import ParseError, parse_gherkin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/gherkin")


class GherkinRequest(BaseModel):
    gherkin_content: str = Field(..., description="Gherkin feature text")


class FeatureSummary(BaseModel):
    name: str
    scenario_count: int
    scenario_names: List[str]
    outline_count: int = Field(0, description="How many scenarios are Scenario Outlines")


class ParseResponse(BaseModel):
    features: List[FeatureSummary]
    total_scenarios: int


class FeatureFile(BaseModel):
    filename: str
    content: str


class FeatureFilesResponse(BaseModel):
    files: List[FeatureFile]


class SaveFeatureFilesRequest(BaseModel):
    gherkin_content: str = Field(..., description="Gherkin feature text")
    directory: str = Field(..., description="Existing directory to write the .feature files into")


class SaveFeatureFilesResponse(BaseModel):
    saved: List[str]


class FeatureFolderRequest(BaseModel):
    directory: str = Field(..., description="Directory holding .feature files")


class FeatureFolderResponse(BaseModel):
    folder_name: str = Field(..., description="Folder name, usable as folder_name for preview")
    files: List[str]
    gherkin_content: str


@router.post("/parse", response_model=ParseResponse)
async def parse(request: GherkinRequest) -> ParseResponse:
    """Parse Gherkin text into features and scenarios."""
    try:
        features = parse_gherkin(request.gherkin_content)
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))

    summaries = [
        FeatureSummary(
            name=f.name,
            scenario_count=len(f.scenarios),
            scenario_names=[s.name for s in f.scenarios],
            outline_count=sum(1 for s in f.scenarios if s.outline)
        )
        for f in features
    ]
    return ParseResponse(
        features=summaries,
        total_scenarios=sum(s.scenario_count for s in summaries)
    )


@router.post("/feature-files", response_model=FeatureFilesResponse)
async def feature_files(request: GherkinRequest) -> FeatureFilesResponse:
    """Split Gherkin text into one .feature file per Feature."""
    try:
        files = split_feature_files(request.gherkin_content)
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Split Gherkin content into {len(files)} feature files")
    return FeatureFilesResponse(files=[FeatureFile(**f) for f in files])


@router.post("/feature-files/save", response_model=SaveFeatureFilesResponse)
def save_feature_files_endpoint(request: SaveFeatureFilesRequest) -> SaveFeatureFilesResponse:
    """Write one .feature file per Feature into a directory."""
    try:
        saved = save_feature_files(request.gherkin_content, request.directory)
    except (ParseError, FeatureFileError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SaveFeatureFilesResponse(saved=saved)


@router.post("/feature-folder", response_model=FeatureFolderResponse)
def load_feature_folder_endpoint(request: FeatureFolderRequest) -> FeatureFolderResponse:
    """Read every .feature file in a directory as one Gherkin document."""
    try:
        folder = load_feature_folder(request.directory)
    except FeatureFileError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return FeatureFolderResponse(
        folder_name=folder["folder_name"],
        files=folder["files"],
        gherkin_content=folder["content"]
    )
