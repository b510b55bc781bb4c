"""
Pydantic models for parsed Gherkin documents.
"""
from typing import List
from pydantic import BaseModel, Field


class Scenario(BaseModel):
    """A single Scenario (or Scenario Outline) block inside a Feature."""
    
    name: str = Field(..., description="Scenario title, or a positional fallback (Scenario_N)")
    raw_content: str = Field(..., description="Block text, re-prefixed with 'Scenario: '")
    outline: bool = Field(default=False, description="Whether the block was written as a Scenario Outline")


class Feature(BaseModel):
    """A Feature block with its scenarios."""
    
    name: str = Field(..., description="Feature title, or a positional fallback (Feature_N)")
    raw_content: str = Field(..., description="Full block text including background and scenarios")
    scenarios: List[Scenario] = Field(default_factory=list, description="Scenarios in document order")
