"""
Services package for the MagentaTV EPG adapter

This package contains the session, fetching, parsing and cross-reference
components and the grabber that wires them together.
"""
from magentatv_epg.services.grabber_service import MagentaGrabber
from magentatv_epg.services.program_assembler import ProgramAssembler
from magentatv_epg.services.tmdb_resolver import LookupCache, TMDBResolver

__all__ = [
    'MagentaGrabber',
    'ProgramAssembler',
    'LookupCache',
    'TMDBResolver',
]
