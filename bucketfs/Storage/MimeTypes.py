from __future__ import annotations

import os
from typing import Dict, List, Optional, Union

import magic

from bucketfs.Utils.Logger import get_logger

logger = get_logger(__name__)

DEFAULT_MIMETYPE = 'application/octet-stream'

# Where an extension lists several types, the first one is used.
MIME_TYPES: Dict[str, Union[str, List[str]]] = {
    'txt': 'text/plain',
    'text': 'text/plain',
    'log': ['text/plain', 'text/x-log'],
    'htm': 'text/html',
    'html': 'text/html',
    'shtml': 'text/html',
    'css': 'text/css',
    'json': ['application/json', 'text/json'],
    'xml': 'application/xml',
    'xsl': 'text/xml',
    'rtx': 'text/richtext',
    'eml': 'message/rfc822',
    'swf': 'application/x-shockwave-flash',
    'flv': 'video/x-flv',

    'hqx': 'application/mac-binhex40',
    'cpt': 'application/mac-compactpro',
    'csv': [
        'text/x-comma-separated-values', 'text/comma-separated-values', 'application/octet-stream',
        'application/vnd.ms-excel', 'application/x-csv', 'text/x-csv', 'text/csv', 'application/csv',
        'application/excel', 'application/vnd.msexcel',
    ],
    'bin': 'application/macbinary',
    'dms': 'application/octet-stream',
    'lha': 'application/octet-stream',
    'lzh': 'application/octet-stream',
    'exe': ['application/octet-stream', 'application/x-msdownload'],
    'class': 'application/octet-stream',
    'so': 'application/octet-stream',
    'sea': 'application/octet-stream',
    'dll': 'application/octet-stream',
    'oda': 'application/oda',
    'smi': 'application/smil',
    'smil': 'application/smil',
    'mif': 'application/vnd.mif',
    'wbxml': 'application/wbxml',
    'wmlc': 'application/wmlc',
    'dcr': 'application/x-director',
    'dir': 'application/x-director',
    'dxr': 'application/x-director',
    'dvi': 'application/x-dvi',
    'gtar': 'application/x-gtar',
    'gz': 'application/x-gzip',
    'php': 'application/x-httpd-php',
    'php4': 'application/x-httpd-php',
    'php3': 'application/x-httpd-php',
    'phtml': 'application/x-httpd-php',
    'phps': 'application/x-httpd-php-source',
    'js': ['application/javascript', 'application/x-javascript'],
    'sit': 'application/x-stuffit',
    'tar': 'application/x-tar',
    'tgz': ['application/x-tar', 'application/x-gzip-compressed'],
    'xhtml': 'application/xhtml+xml',
    'xht': 'application/xhtml+xml',

    # images
    'png': 'image/png',
    'jpe': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'jpg': 'image/jpeg',
    'gif': 'image/gif',
    'bmp': 'image/bmp',
    'ico': 'image/vnd.microsoft.icon',
    'tiff': 'image/tiff',
    'tif': 'image/tiff',
    'svg': 'image/svg+xml',
    'svgz': 'image/svg+xml',

    # archives
    'zip': ['application/x-zip', 'application/zip', 'application/x-zip-compressed'],
    'rar': 'application/x-rar-compressed',
    'msi': 'application/x-msdownload',
    'cab': 'application/vnd.ms-cab-compressed',

    # audio/video
    'mid': 'audio/midi',
    'midi': 'audio/midi',
    'mpga': 'audio/mpeg',
    'mp2': 'audio/mpeg',
    'mp3': ['audio/mpeg', 'audio/mpg', 'audio/mpeg3', 'audio/mp3'],
    'aif': 'audio/x-aiff',
    'aiff': 'audio/x-aiff',
    'aifc': 'audio/x-aiff',
    'ram': 'audio/x-pn-realaudio',
    'rm': 'audio/x-pn-realaudio',
    'rpm': 'audio/x-pn-realaudio-plugin',
    'ra': 'audio/x-realaudio',
    'rv': 'video/vnd.rn-realvideo',
    'wav': ['audio/x-wav', 'audio/wave', 'audio/wav'],
    'mpeg': 'video/mpeg',
    'mpg': 'video/mpeg',
    'mpe': 'video/mpeg',
    'qt': 'video/quicktime',
    'mov': 'video/quicktime',
    'avi': 'video/x-msvideo',
    'movie': 'video/x-sgi-movie',

    # adobe
    'pdf': 'application/pdf',
    'psd': ['image/vnd.adobe.photoshop', 'application/x-photoshop'],
    'ai': 'application/postscript',
    'eps': 'application/postscript',
    'ps': 'application/postscript',

    # ms office
    'doc': 'application/msword',
    'docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'word': ['application/msword', 'application/octet-stream'],
    'rtf': 'application/rtf',
    'xl': 'application/excel',
    'xls': ['application/excel', 'application/vnd.ms-excel', 'application/msexcel'],
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'ppt': ['application/powerpoint', 'application/vnd.ms-powerpoint'],

    # open office
    'odt': 'application/vnd.oasis.opendocument.text',
    'ods': 'application/vnd.oasis.opendocument.spreadsheet',
}


def extension_of(path: str) -> str:
    """Lower-cased text after the last dot, or the whole path when there is none."""
    return path.rsplit('.', 1)[-1].lower()


def mime_type_from_extension(path: str) -> Optional[str]:
    """Look the path's extension up in the table."""
    mime = MIME_TYPES.get(extension_of(path))
    if isinstance(mime, list):
        return mime[0]
    return mime


def guess_mime_type(path: str) -> str:
    """Resolve a MIME type for a path.

    The extension table decides. Only when it has no entry and the path
    also names a readable local file is the content sniffed.
    """
    mime = mime_type_from_extension(path)
    if mime is not None:
        return mime

    if os.path.isfile(path):
        try:
            return str(magic.from_file(path, mime=True))
        except (OSError, magic.MagicException) as e:
            logger.warning("Content sniffing failed", {'path': path, 'error': str(e)})

    return DEFAULT_MIMETYPE
