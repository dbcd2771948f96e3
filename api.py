from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from crate_analyzer import commands
from crate_analyzer.config import AnalyzerConfig
from crate_analyzer.errors import IoError, PathError
from crate_analyzer.model import ProjectProblems, ProjectStructure


app = FastAPI(title="Crate Structure Analyzer")


@lru_cache(maxsize=1)
def get_config() -> AnalyzerConfig:
	return AnalyzerConfig.from_env()


class AnalyzeRequest(BaseModel):
	root_path: str


class DocumentationRequest(BaseModel):
	structure: ProjectStructure
	output_path: Optional[str] = None


class DocumentationResponse(BaseModel):
	path: str


class FileRequest(BaseModel):
	path: str


class FileContent(BaseModel):
	path: str
	content: str


class SaveResponse(BaseModel):
	ok: bool


@app.exception_handler(PathError)
async def path_error_handler(request: Request, exc: PathError) -> JSONResponse:
	return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(IoError)
async def io_error_handler(request: Request, exc: IoError) -> JSONResponse:
	return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.post("/analyze", response_model=ProjectStructure)
def analyze(req: AnalyzeRequest) -> ProjectStructure:
	return commands.analyze_project(req.root_path, get_config())


@app.post("/problems", response_model=ProjectProblems)
def problems(structure: ProjectStructure) -> ProjectProblems:
	return commands.analyze_problems(structure, get_config())


@app.post("/documentation", response_model=DocumentationResponse)
def documentation(req: DocumentationRequest) -> DocumentationResponse:
	path = commands.generate_documentation(req.structure, req.output_path, get_config())
	return DocumentationResponse(path=path)


@app.post("/files/read", response_model=FileContent)
def read_file(req: FileRequest) -> FileContent:
	return FileContent(path=req.path, content=commands.read_file_content(req.path))


@app.post("/files/save", response_model=SaveResponse)
def save_file(req: FileContent) -> SaveResponse:
	return SaveResponse(ok=commands.save_file_content(req.path, req.content))


def create_app() -> FastAPI:
	return app
