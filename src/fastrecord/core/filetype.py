"""File type detection from magic bytes, extensions and parser names."""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence, Tuple, Union


class FileType(Enum):
    # compression
    GZIP = "Gzip"
    BZIP = "Bzip"
    LZMA = "Lzma"
    ZSTD = "Zstd"
    # bioinformatics
    BAM = "Bam"
    FASTA = "Fasta"
    FASTQ = "Fastq"
    FACS = "Facs"
    SAM = "Sam"
    SCF = "Scf"
    ZTR = "Ztr"
    # chemoinformatics
    AGILENT_MSMS_SCAN = "AgilentMsMsScan"
    AGILENT_CHEMSTATION_FID = "AgilentChemstationFid"
    AGILENT_CHEMSTATION_MS = "AgilentChemstationMs"
    AGILENT_CHEMSTATION_MWD = "AgilentChemstationMwd"
    AGILENT_CHEMSTATION_UV = "AgilentChemstationUv"
    AGILENT_DAD = "AgilentDad"
    BRUKER_BAF = "BrukerBaf"
    BRUKER_MSMS = "BrukerMsms"
    INFICON_HAPSITE = "InficonHapsite"
    THERMO_RAW = "ThermoRaw"
    THERMO_CF = "ThermoCf"
    THERMO_DXF = "ThermoDxf"
    WATERS_AUTOSPEC = "WatersAutospec"
    NETCDF = "NetCdf"
    MZXML = "MzXml"
    # geology
    LAS = "Las"
    # catch all
    PNG = "Png"
    HDF5 = "Hdf5"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class DelimitedText:
    """Tab-, comma- or otherwise delimited text; ``delimiter`` is one byte."""
    delimiter: bytes

    def __str__(self) -> str:
        return f"DelimitedText({self.delimiter[0]})"


AnyFileType = Union[FileType, DelimitedText]
MagicRule = Tuple[bytes, FileType]       # (leading byte-pattern, type)

_COMPRESSION = frozenset({FileType.GZIP, FileType.BZIP, FileType.LZMA, FileType.ZSTD})

# Checked longest first; only rules no longer than the prefix are considered.
_MAGIC_8: Sequence[MagicRule] = (
    (b"FCS2.0  ", FileType.FACS),
    (b"FCS3.0  ", FileType.FACS),
    (b"FCS3.1  ", FileType.FACS),
    (b"~VERSION", FileType.LAS),
    (b"~Version", FileType.LAS),
    (b"\x89PNG\r\n\x1a\n", FileType.PNG),
    (b"\x89HDF\r\n\x1a\n", FileType.HDF5),
    (b"\x04\x03\x02\x01SPAH", FileType.INFICON_HAPSITE),
    (b"\xaeZTR\r\n\x1a\n", FileType.ZTR),
    (b"\x01\xa1F\x00i\x00n\x00", FileType.THERMO_RAW),
)
_MAGIC_4: Sequence[MagicRule] = (
    (b"BAM\x01", FileType.BAM),
    (b"@HD\t", FileType.SAM),
    (b"@SQ\t", FileType.SAM),
    (b".scf", FileType.SCF),
    (b"\x02\x38\x31\x00", FileType.AGILENT_CHEMSTATION_FID),
    (b"\x01\x32\x00\x00", FileType.AGILENT_CHEMSTATION_MS),
    (b"\x02\x33\x30\x00", FileType.AGILENT_CHEMSTATION_MWD),
    (b"\x03\x31\x33\x31", FileType.AGILENT_CHEMSTATION_UV),
    (b"\x28\xb5\x2f\xfd", FileType.ZSTD),
)
_MAGIC_2: Sequence[MagicRule] = (
    (b"\x1f\x8b", FileType.GZIP),
    (b"\x0f\x8b", FileType.GZIP),
    (b"\x42\x5a", FileType.BZIP),
    (b"\xfd\x37", FileType.LZMA),
    (b"\x24\x00", FileType.BRUKER_BAF),
    (b"\x43\x44", FileType.NETCDF),
)
_MAGIC_1: Sequence[MagicRule] = (
    (b">", FileType.FASTA),
    (b"@", FileType.FASTQ),
)

# Thermo isotope files share a prefix; the CF variant names itself in UTF-16
_THERMO_PREFIXES = (b"\xff\xff\x05\x00", b"\xff\xff\x06\x00")
_THERMO_CF_MARKER = "CIsoGC".encode("utf-16-le")
_THERMO_CF_MIN_LEN = 78


def _match(prefix: bytes, rules: Sequence[MagicRule]) -> FileType | None:
    for pattern, file_type in rules:
        if prefix.startswith(pattern):
            return file_type
    return None


def classify(prefix: bytes) -> FileType:
    """Guess the file type from the first bytes of a stream."""
    prefix = bytes(prefix)
    if len(prefix) >= 8 and (ft := _match(prefix, _MAGIC_8)):
        return ft
    if len(prefix) >= 4:
        if ft := _match(prefix, _MAGIC_4):
            return ft
        if prefix[:4] in _THERMO_PREFIXES:
            if len(prefix) >= _THERMO_CF_MIN_LEN and prefix[52:64] == _THERMO_CF_MARKER:
                return FileType.THERMO_CF
            return FileType.THERMO_DXF
    if len(prefix) >= 2 and (ft := _match(prefix, _MAGIC_2)):
        return ft
    return _match(prefix, _MAGIC_1) or FileType.UNKNOWN


def is_compression(file_type: AnyFileType) -> bool:
    return file_type in _COMPRESSION


_BY_EXTENSION: Dict[str, Tuple[FileType, ...]] = {
    "gz": (FileType.GZIP,),
    "gzip": (FileType.GZIP,),
    "bz": (FileType.BZIP,),
    "bz2": (FileType.BZIP,),
    "bzip": (FileType.BZIP,),
    "xz": (FileType.LZMA,),
    "zstd": (FileType.ZSTD,),
    "ch": (FileType.AGILENT_CHEMSTATION_FID, FileType.AGILENT_CHEMSTATION_MWD),
    "ms": (FileType.AGILENT_CHEMSTATION_MS,),
    "uv": (FileType.AGILENT_CHEMSTATION_UV,),
    "bam": (FileType.BAM,),
    "baf": (FileType.BRUKER_BAF,),
    "ami": (FileType.BRUKER_MSMS,),
    "fcs": (FileType.FACS,),
    "lmd": (FileType.FACS,),
    "fa": (FileType.FASTA,),
    "faa": (FileType.FASTA,),
    "fasta": (FileType.FASTA,),
    "fna": (FileType.FASTA,),
    "faq": (FileType.FASTQ,),
    "fastq": (FileType.FASTQ,),
    "fq": (FileType.FASTQ,),
    "hdf": (FileType.HDF5,),
    "raw": (FileType.THERMO_RAW,),
    "mzxml": (FileType.MZXML,),
    "cdf": (FileType.NETCDF,),
    "png": (FileType.PNG,),
    "hps": (FileType.INFICON_HAPSITE,),
    "sam": (FileType.SAM,),
    "scf": (FileType.SCF,),
    "cf": (FileType.THERMO_CF,),
    "dxf": (FileType.THERMO_DXF,),
    "idx": (FileType.WATERS_AUTOSPEC,),
    "ztr": (FileType.ZTR,),
}


def from_extension(ext: str) -> Tuple[FileType, ...]:
    """Return every file type a file with extension ``ext`` (no dot) could be."""
    return _BY_EXTENSION.get(ext, (FileType.UNKNOWN,))


_BY_PARSER_NAME: Dict[str, AnyFileType] = {
    "chemstation_fid": FileType.AGILENT_CHEMSTATION_FID,
    "chemstation_ms": FileType.AGILENT_CHEMSTATION_MS,
    "chemstation_mwd": FileType.AGILENT_CHEMSTATION_MWD,
    "chemstation_uv": FileType.AGILENT_CHEMSTATION_UV,
    "csv": DelimitedText(b","),
    "bam": FileType.BAM,
    "fcs": FileType.FACS,
    "fasta": FileType.FASTA,
    "fastq": FileType.FASTQ,
    "inficon": FileType.INFICON_HAPSITE,
    "png": FileType.PNG,
    "sam": FileType.SAM,
    "thermo_cf": FileType.THERMO_CF,
    "thermo_dxf": FileType.THERMO_DXF,
    "tsv": DelimitedText(b"\t"),
}
_PARSER_NAME_BY_TYPE: Dict[AnyFileType, str] = {ft: name for name, ft in _BY_PARSER_NAME.items()}

PARSER_NAMES: Tuple[str, ...] = tuple(_BY_PARSER_NAME)


def from_parser_name(name: str) -> AnyFileType:
    return _BY_PARSER_NAME.get(name, FileType.UNKNOWN)


def to_parser_name(file_type: AnyFileType) -> str:
    name = _PARSER_NAME_BY_TYPE.get(file_type)
    if name is None:
        return f"unsupported/{file_type}"
    return name
