import os
import subprocess
import logging
import tempfile

logger = logging.getLogger(__name__)


class GpgClient:
    def __init__(self, binary: str = "gpg"):
        self.binary: str = binary

    def sign(self, path: str, key: str) -> str:
        cmd = [self.binary, "--batch", "--armor", "--local-user", key, "--output", "-", "--detach-sign", path]
        result = subprocess.run(cmd, check=False, capture_output=True, text=True, env=os.environ)
        if result.returncode != 0:
            logger.error(f"gpg signing failed with code {result.returncode}: {result.stderr}")
            raise RuntimeError(f"Unable to sign {path} with key {key}")
        return result.stdout

    def verify(self, path: str, signature: str) -> bool:
        with tempfile.NamedTemporaryFile("w", suffix=".asc", delete=False) as sig_file:
            sig_file.write(signature)
        try:
            cmd = [self.binary, "--batch", "--verify", sig_file.name, path]
            result = subprocess.run(cmd, check=False, capture_output=True, text=True, env=os.environ)
        finally:
            os.unlink(sig_file.name)
        if result.returncode != 0:
            logger.warning(f"gpg verification of {path} failed: {result.stderr}")
            return False
        return True
