"""File-system tools: read, write, list, create directories and remove agent-created paths."""

import shutil

from langchain_core.tools import BaseTool, tool
from pydantic import BaseModel, Field

from askagent.tools.paths import ToolContext
from askagent.utils.logging import get_logger

logger = get_logger(__name__)


class ReadFileInput(BaseModel):
    """Input schema for reading a file."""

    file: str = Field(..., min_length=1, description="Path of the file to read, relative to the working directory")


class WriteFileInput(BaseModel):
    """Input schema for writing a file."""

    file: str = Field(..., min_length=1, description="Path of the file to write, relative to the working directory")
    content: str = Field(..., description="Full text content of the file")


class ListFilesInput(BaseModel):
    """Input schema for listing files."""

    path: str | None = Field(None, description="Directory to list (defaults to the working directory)")
    recursive: bool | None = Field(True, description="Also list files one level into sub-directories")
    exclude: str | None = Field(
        None,
        description="Comma-separated relative path prefixes to skip (e.g. node_modules,.git)",
    )


class CreateDirectoryInput(BaseModel):
    """Input schema for creating a directory."""

    path: str = Field(..., min_length=1, description="Directory to create, including missing parents")


class RemoveFilesInput(BaseModel):
    """Input schema for removing files."""

    files: str | list[str] = Field(
        ...,
        description="File or directory path(s) to remove. Can be a single string or array of strings.",
    )


def create_read_file_tool(context: ToolContext) -> BaseTool:
    @tool("readFile", args_schema=ReadFileInput)
    async def read_file(file: str) -> str:
        """Read a UTF-8 text file.

        Files inside the working directory (and the user's ~/.askagent directory)
        can be read. Returns the file content, or a short error such as
        "File not found" or "Access denied".
        """
        path = context.resolve(file)
        if not context.can_read(path):
            return "Access denied"
        if not path.is_file():
            return "File not found"

        try:
            return path.read_text(encoding="utf-8")
        except PermissionError:
            return "Access denied"
        except (OSError, UnicodeDecodeError) as e:
            return str(e)

    return read_file


def create_write_file_tool(context: ToolContext) -> BaseTool:
    @tool("writeFile", args_schema=WriteFileInput)
    async def write_file(file: str, content: str) -> str:
        """Create or overwrite a UTF-8 text file inside the working directory.

        The parent directory must already exist (use createDirectory first).
        New files are remembered so they can later be removed with removeFiles.
        """
        path = context.resolve(file)
        if not context.can_write(path):
            return "Access denied"

        existed = path.exists()
        try:
            path.write_text(content, encoding="utf-8")
        except FileNotFoundError:
            return "File not found"
        except PermissionError:
            return "Access denied"
        except OSError as e:
            return str(e)

        if not existed:
            context.created_paths.add(path)

        return "file created"

    return write_file


def create_list_files_tool(context: ToolContext) -> BaseTool:
    @tool("listFiles", args_schema=ListFilesInput)
    async def list_files(path: str | None = None, recursive: bool | None = True, exclude: str | None = None) -> str:
        """List files in a directory, one relative path per line.

        With recursive (the default) files directly inside each sub-directory
        are listed too. Use exclude to skip noisy prefixes such as .git.
        """
        directory = context.resolve(path)
        if not context.can_read(directory):
            return "Access denied"
        if not directory.is_dir():
            return "Directory not found"

        excluded = [prefix.strip() for prefix in (exclude or "").split(",") if prefix.strip()]

        def is_excluded(relative_path: str) -> bool:
            return any(relative_path.startswith(prefix) for prefix in excluded)

        result: list[str] = []
        try:
            for entry in sorted(directory.iterdir()):
                relative_path = context.relative(entry)
                if is_excluded(relative_path):
                    continue
                if entry.is_file():
                    result.append(relative_path)
                elif entry.is_dir() and recursive is not False:
                    for child in sorted(entry.iterdir()):
                        child_path = context.relative(child)
                        if child.is_file() and not is_excluded(child_path):
                            result.append(child_path)
        except PermissionError:
            return "Access denied"

        return "\n".join(result)

    return list_files


def create_create_directory_tool(context: ToolContext) -> BaseTool:
    @tool("createDirectory", args_schema=CreateDirectoryInput)
    async def create_directory(path: str) -> str:
        """Create a directory (and any missing parents) inside the working directory."""
        directory = context.resolve(path)
        if not context.can_write(directory):
            raise PermissionError("Access denied")
        if directory.exists():
            return "directory already exists"

        directory.mkdir(parents=True)
        context.created_paths.add(directory)
        return "directory created"

    return create_directory


def create_remove_files_tool(context: ToolContext) -> BaseTool:
    @tool("removeFiles", args_schema=RemoveFilesInput)
    async def remove_files(files: str | list[str]) -> str:
        """Remove files or directories that were created earlier in this conversation.

        Paths the agent did not create are refused. One status line is
        returned per requested path.
        """
        targets = [files] if isinstance(files, str) else files
        results: list[str] = []

        for file in targets:
            path = context.resolve(file)

            if not context.can_write(path):
                results.append(f"{file}: Access denied - path outside current directory")
                continue

            if path not in context.created_paths:
                results.append(f"{file}: You can only delete files previously created by the agent")
                continue

            if not path.exists():
                context.created_paths.discard(path)
                results.append(f"{file}: File or directory not found")
                continue

            try:
                if path.is_dir():
                    shutil.rmtree(path)
                    results.append(f"{file}: Directory removed successfully")
                else:
                    path.unlink()
                    results.append(f"{file}: File removed successfully")
                context.created_paths.discard(path)
            except OSError as e:
                logger.warning(f"Failed to remove {path}: {e}")
                results.append(f"{file}: Error removing - {e}")

        return "\n".join(results)

    return remove_files
