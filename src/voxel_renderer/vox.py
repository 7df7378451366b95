"""
MagicaVoxel .vox Reader and Writer

The .vox format is a RIFF-style chunk-based binary format used by MagicaVoxel.
It stores voxels as sparse data with a 256-color palette.

File Structure:
- Header: "VOX " (4 bytes) + version (4 bytes, int32)
- MAIN chunk (container)
  - PACK chunk: model count (optional, older files)
  - SIZE chunk: dimensions (x, y, z)          } repeated once
  - XYZI chunk: voxel data (x, y, z, i each)  } per model
  - RGBA chunk: 256-color palette (optional)
  - Scene graph, material and layer chunks (ignored here)

Limitations:
- Maximum 256x256x256 dimensions per model
- Coordinates are uint8, color indices 1-255
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union
import logging
import struct
import numpy as np

from .color import PALETTE_SIZE, default_palette
from .errors import VoxParseError

logger = logging.getLogger(__name__)


# VOX format constants
VOX_MAGIC = b'VOX '
VOX_VERSION = 150
CHUNK_HEADER_SIZE = 12


@dataclass
class VoxModel:
    """
    One model of a .vox file.

    Attributes:
        size: Bounding dimensions (x, y, z)
        voxels: Array of shape (N, 4) with uint8 (x, y, z, color_index) rows
    """

    size: Tuple[int, int, int]
    voxels: np.ndarray = field(default_factory=lambda: np.zeros((0, 4), dtype=np.uint8))

    def __post_init__(self):
        self.size = tuple(int(s) for s in self.size)
        self.voxels = np.asarray(self.voxels, dtype=np.uint8).reshape(-1, 4)

    @property
    def voxel_count(self) -> int:
        return len(self.voxels)


@dataclass
class VoxData:
    """
    Contents of a .vox file: its models and the palette they share.

    Attributes:
        models: Models in file order
        palette: Array of shape (256,) with packed little-endian RGBA entries
        version: Format version read from the header
    """

    models: List[VoxModel]
    palette: np.ndarray = field(default_factory=default_palette)
    version: int = VOX_VERSION


class VoxChunk:
    """Base class for VOX chunks."""

    def __init__(self, chunk_id: bytes):
        self.chunk_id = chunk_id
        self.content = b''
        self.children = b''

    def pack(self) -> bytes:
        """Pack the chunk into bytes."""
        return (
            self.chunk_id +
            struct.pack('<II', len(self.content), len(self.children)) +
            self.content +
            self.children
        )


class SizeChunk(VoxChunk):
    """SIZE chunk containing model dimensions."""

    def __init__(self, size_x: int, size_y: int, size_z: int):
        super().__init__(b'SIZE')
        # Note: VOX uses x, y, z where z is up
        self.content = struct.pack('<III', size_x, size_y, size_z)


class XYZIChunk(VoxChunk):
    """XYZI chunk containing voxel positions and color indices."""

    def __init__(self, voxels: np.ndarray):
        super().__init__(b'XYZI')
        voxels = np.ascontiguousarray(voxels, dtype=np.uint8).reshape(-1, 4)
        self.content = struct.pack('<I', len(voxels)) + voxels.tobytes()


class RGBAChunk(VoxChunk):
    """RGBA chunk containing the 256-color palette."""

    def __init__(self, palette: np.ndarray):
        super().__init__(b'RGBA')
        entries = np.zeros(PALETTE_SIZE, dtype='<u4')
        n = min(len(palette), PALETTE_SIZE)
        entries[:n] = palette[:n]
        self.content = entries.tobytes()


class MainChunk(VoxChunk):
    """MAIN container chunk."""

    def __init__(self):
        super().__init__(b'MAIN')

    def add_child(self, chunk: VoxChunk):
        """Add a child chunk."""
        self.children += chunk.pack()


def _read_chunk(buffer: bytes, offset: int) -> Tuple[bytes, bytes, int, int]:
    """
    Read one chunk header and its content.

    Returns:
        (chunk_id, content, children_size, offset of the children block)
    """
    if offset + CHUNK_HEADER_SIZE > len(buffer):
        raise VoxParseError(f"Truncated chunk header at byte {offset}")

    chunk_id = buffer[offset:offset + 4]
    content_size, children_size = struct.unpack_from('<II', buffer, offset + 4)
    start = offset + CHUNK_HEADER_SIZE
    end = start + content_size
    if end + children_size > len(buffer):
        raise VoxParseError(
            f"Chunk {chunk_id!r} at byte {offset} runs past the end of the file"
        )

    return chunk_id, buffer[start:end], children_size, end


def _parse_size(content: bytes) -> Tuple[int, int, int]:
    if len(content) < 12:
        raise VoxParseError("SIZE chunk is shorter than 12 bytes")
    return struct.unpack_from('<III', content)


def _parse_xyzi(content: bytes) -> np.ndarray:
    if len(content) < 4:
        raise VoxParseError("XYZI chunk is missing its voxel count")
    num_voxels = struct.unpack_from('<I', content)[0]
    if len(content) < 4 + num_voxels * 4:
        raise VoxParseError(
            f"XYZI chunk declares {num_voxels} voxels but holds {(len(content) - 4) // 4}"
        )
    data = np.frombuffer(content, dtype=np.uint8, count=num_voxels * 4, offset=4)
    return data.reshape(num_voxels, 4).copy()


def _parse_rgba(content: bytes) -> np.ndarray:
    if len(content) < PALETTE_SIZE * 4:
        raise VoxParseError(f"RGBA chunk is shorter than {PALETTE_SIZE * 4} bytes")
    return np.frombuffer(content, dtype='<u4', count=PALETTE_SIZE).astype(np.uint32)


def parse_vox(buffer: bytes) -> VoxData:
    """
    Parse the contents of a .vox file.

    Args:
        buffer: Raw file bytes

    Returns:
        VoxData with every model and the shared palette
    """
    if len(buffer) < 8 or buffer[:4] != VOX_MAGIC:
        raise VoxParseError(f"Invalid VOX file: bad magic {buffer[:4]!r}")

    version = struct.unpack_from('<I', buffer, 4)[0]

    main_id, _, main_children_size, offset = _read_chunk(buffer, 8)
    if main_id != b'MAIN':
        raise VoxParseError(f"Expected MAIN chunk, found {main_id!r}")

    models: List[VoxModel] = []
    palette: Optional[np.ndarray] = None
    pending_size: Optional[Tuple[int, int, int]] = None

    end = offset + main_children_size
    while offset < end:
        chunk_id, content, children_size, offset = _read_chunk(buffer, offset)
        # Children of nested chunks carry nothing the renderer reads
        offset += children_size

        if chunk_id == b'SIZE':
            pending_size = _parse_size(content)

        elif chunk_id == b'XYZI':
            if pending_size is None:
                raise VoxParseError("XYZI chunk without a preceding SIZE chunk")
            models.append(VoxModel(pending_size, _parse_xyzi(content)))
            pending_size = None

        elif chunk_id == b'RGBA':
            palette = _parse_rgba(content)

    if palette is None:
        palette = default_palette()

    logger.debug("Parsed VOX version %d with %d model(s)", version, len(models))
    return VoxData(models=models, palette=palette, version=version)


def load_vox(file_path: Union[str, Path]) -> VoxData:
    """
    Load a .vox file.

    Args:
        file_path: Path to .vox file

    Returns:
        VoxData with every model and the shared palette
    """
    file_path = Path(file_path)

    try:
        buffer = file_path.read_bytes()
    except OSError as exc:
        raise VoxParseError(f"Could not read '{file_path}'") from exc

    return parse_vox(buffer)


def save_vox(data: VoxData, output_path: Union[str, Path]):
    """
    Write models and palette to a .vox file.

    Args:
        data: Models and palette to write
        output_path: Output file path
    """
    main_chunk = MainChunk()
    for model in data.models:
        main_chunk.add_child(SizeChunk(*model.size))
        main_chunk.add_child(XYZIChunk(model.voxels))
    main_chunk.add_child(RGBAChunk(data.palette))

    with open(output_path, 'wb') as f:
        f.write(VOX_MAGIC)
        f.write(struct.pack('<I', data.version))
        f.write(main_chunk.pack())
