import json
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path


class ApiDocsBuildTest(unittest.TestCase):
    def test_openapi_document_lists_crypto_routes(self):
        repo_root = Path(__file__).resolve().parents[1]
        with tempfile.TemporaryDirectory() as tmp:
            subprocess.run(
                [sys.executable, 'scripts/build_api_docs_site.py', '--out-dir', tmp],
                cwd=repo_root,
                check=True,
            )
            doc = json.loads((Path(tmp) / 'openapi-live.json').read_text(encoding='utf-8'))

        self.assertEqual(doc['info']['title'], 'Crypto Quote Gateway')
        self.assertIn('/v1/crypto/quotes/{pair}', doc['paths'])
        self.assertIn('/v1/crypto/quotes', doc['paths'])
        self.assertIn('/v1/metrics/quote', doc['paths'])


if __name__ == "__main__":
    unittest.main()
