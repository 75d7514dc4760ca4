"""
API 層

只負責 HTTP 轉換：解析請求、呼叫 GameManager、把業務異常對應成 HTTP status code
"""
