"""
Constants for batch FASTQ trimming.

Contains the recognised input extensions, output layout conventions and
defaults shared by the scheduler, the file runner and the command line.
"""

# Input files are selected by name; compression is sniffed from content
FASTQ_EXTENSIONS = ('.fq', '.fq.gz', '.fastq', '.fastq.gz')

# gzip member header (RFC 1952)
GZIP_MAGIC = b'\x1f\x8b'

# Side outputs for trimmed-away bases
# 5' = bases removed from the start of a line, 3' = from the end
LEADING_SIDE_DIR = '5-prime'
TRAILING_SIDE_DIR = '3-prime'
LEADING_SIDE_PREFIX = 'trim5_'
TRAILING_SIDE_PREFIX = 'trim3_'

# Audit log and summary table, written under the output directory
AUDIT_LOG_NAME = 'log.txt'
SUMMARY_BASENAME = 'trim_summary'

# Output compression
COMPRESSION_MODES = ('auto', 'plain', 'gzip')
DEFAULT_COMPRESSLEVEL = 6

# Log progress every N lines within a single file (1M reads)
PROGRESS_LINE_INTERVAL = 4_000_000

# Outcome reasons
REASON_OUTPUT_EXISTS = 'output exists'
REASON_SOURCE_OPEN = 'source open failed'
REASON_DESTINATION_OPEN = 'destination open failed'
REASON_STREAM = 'stream error during transform'
