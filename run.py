"""
Application entry point
File khởi chạy ứng dụng Flask
"""
import io
import sys

# Thiết lập mã hóa UTF-8 cho đầu ra console
sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

import config
from app import create_app

# Tạo Flask application
app = create_app()


def main():
    app.logger.info(f"🚀 Starting Flask application on {config.FLASK_HOST}:{config.FLASK_PORT}")
    app.logger.info(f"🔧 Debug mode: {config.FLASK_DEBUG}")

    # use_reloader=False: reloader sẽ mở camera hai lần
    app.run(
        host=config.FLASK_HOST,
        port=config.FLASK_PORT,
        debug=config.FLASK_DEBUG,
        threaded=True,
        use_reloader=False,
    )


if __name__ == '__main__':
    main()
