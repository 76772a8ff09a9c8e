from ocr_studio.app import main

main()
