"""
gae_deploy_kit
--------------

App Engine 배포용 CLI 패키지.
appcfg / gcloud app modules 명령을 환경변수 기반 설정으로 조립하여 실행하고,
server id 로 지정한 계정을 쓰는 경우 appcfg 의 비밀번호 프롬프트에 자동으로 응답한다.
"""

__all__ = [
    "config",
    "orchestrator",
    "supervisor",
]
