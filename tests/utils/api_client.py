import json
from typing import Optional, Dict, Any


class APIClient:
    """统一的API客户端，基于 Flask test client"""

    def __init__(self, test_client, verbose: bool = False):
        self.client = test_client
        self.verbose = verbose
        self.token: Optional[str] = None

    def set_token(self, token: Optional[str]):
        """设置认证token；None 表示匿名访问"""
        self.token = token

    def request(self, method: str, path: str,
                params: Optional[Dict] = None,
                json_data: Optional[Dict] = None,
                headers: Optional[Dict] = None,
                attach_token: bool = True) -> Dict[str, Any]:
        """统一的API请求方法，返回响应 JSON，并附带 _http_status"""
        request_headers = {}
        if headers:
            request_headers.update(headers)
        if attach_token and self.token:
            request_headers["Authorization"] = f"Bearer {self.token}"

        response = self.client.open(
            path,
            method=method.upper(),
            query_string=params,
            json=json_data,
            headers=request_headers,
        )
        result = response.get_json(silent=True)
        if isinstance(result, dict):
            result["_http_status"] = response.status_code
        else:
            result = {
                "_http_status": response.status_code,
                "_raw_text": response.get_data(as_text=True),
            }

        if self.verbose:
            print(f"\n{method.upper()} {path} params={params} body={json_data}")
            print(json.dumps(result, ensure_ascii=False, indent=2))
        return result
