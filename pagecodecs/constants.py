import os
import re

from dotenv import load_dotenv


load_dotenv()


class ImpVar:
    REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", 30))
    USER_AGENT = os.getenv(
        "USER_AGENT", "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko)"
    )
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
    PROFILES_FILE = os.getenv("PROFILES_FILE", "")

    SCANMANGA_URL = os.getenv("SCANMANGA_URL", "https://m.scan-manga.com")
    SCANMANGA_API_DOMAIN = os.getenv("SCANMANGA_API_DOMAIN", "bqj.scan-manga.com")
    SCANMANGA_API_TOKEN = "yf"
    JAPSCAN_URL = os.getenv("JAPSCAN_URL", "https://www.japscan.foo")
    CRUNCHYSCAN_URL = os.getenv("CRUNCHYSCAN_URL", "https://crunchyscan.fr")

    # Japscan strips this many characters of junk before the cipher text
    JAPSCAN_PREFIX_LENGTH = 7
    JAPSCAN_MAPPING = "M7HXtiwLKdpIBkEbQ2OaF8Sxmz1yGReU4q5DncgsT6jVA3Pfv0WuJ9YCZNhlor"[::-1]
    JAPSCAN_REFERENCE = "uGJ657yOSbZRtplgHEYPBwCqaxQIizDWmTLMsAeNocnX0d98rf4Kj1kvh3UFV2"[::-1]
    JAPSCAN_IMAGE_SUFFIX = "?o=1"

    CRUNCHYSCAN_DECOY = "get-image"

    PACKER_RE = re.compile(
        r'eval\(function\(h,u,n,t,e,r\)\{.*?\}\("([^"]+)",\d+,"([^"]+)",(\d+),(\d+),\d+\)\)'
    )
    SCANMANGA_PARAMS_RE = re.compile(r"sml = '([^']+)';\n?.*var sme = '([^']+)'")
    SCANMANGA_IDC_RE = re.compile(r"const idc = (\d+)")
    SCANMANGA_API_RE = re.compile(r"""(?:var\s+)?(?:api_url|apiUrl|API_URL)\s*=\s*['"]https?://([^/'"]+)""")
    SCANMANGA_API_ALT_RE = re.compile(r"""['"]https?://([a-z0-9-]+\.scan-manga\.com)/(?:api/)?lel/""")
    CRUNCHYSCAN_IMAGES_RE = re.compile(r"allImg\s*=\s*(\[.*?\])\s*;", re.DOTALL)

    SITE_URL_RE = re.compile(
        r"(?:https?:\/\/)?(?:[a-z0-9-]+\.)*(scan-manga|japscan|crunchyscan)\.[a-z]+(?:\/.*)?$", re.IGNORECASE
    )
    URL_RE = re.compile(
        r"^(?:http|ftp)s?://"  # http:// or https://
        r"(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+(?:[A-Z]{2,6}\.?|[A-Z0-9-]{2,}\.?)|"  # domain...
        r"localhost|"  # localhost...
        r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})"  # ...or ip
        r"(?::\d+)?"  # optional port
        r"(?:/?|[/?]\S+)$",
        re.IGNORECASE,
    )
