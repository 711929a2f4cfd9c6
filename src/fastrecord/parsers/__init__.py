"""Format-specific record parsers for fastrecord."""

from .fasta import FastaParser, FastaRecord
from .fastq import FastqParser, FastqRecord
from .sam import SamParser, SamRecord
from .bam import BamParser, BamRecord
from .inficon import InficonParser, InficonRecord
