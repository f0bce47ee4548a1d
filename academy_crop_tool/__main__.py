from academy_crop_tool.app import main

main()
