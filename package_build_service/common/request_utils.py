# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

# Shared session retrying idempotent requests on connection errors and on
# server side failures.
requests_session = requests.Session()
requests_session.headers["User-Agent"] = "package-build-service"
_retries = Retry(total=3, backoff_factor=1, status_forcelist=(500, 502, 503, 504))
requests_session.mount("http://", HTTPAdapter(max_retries=_retries))
requests_session.mount("https://", HTTPAdapter(max_retries=_retries))
